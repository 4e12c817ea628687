"""
聚类评估指标模块

该模块提供了统一的聚类质量评估函数，
k-means、FCM、PCM、谱聚类及谱聚类+FCM 的结果都通过同一组函数评估。

主要指标包括：
- 内部有效性指标：轮廓系数（Silhouette）、Dunn 指数、Calinski-Harabasz 指数
- 模糊聚类指标：分配熵、划分熵（PE）、模糊划分系数（FPC）

输入为距离矩阵与硬标签或隶属度矩阵（隶属度矩阵按行取 arg-max 得到硬标签）。
"""

from typing import Dict, List, Optional, Tuple, Union
import numpy as np
from sklearn import metrics

from ..exceptions import InvalidInputError
from ..graph.distance import check_distance_matrix

ENTROPY_EPS = 1e-10


def labels_from_membership(membership: np.ndarray) -> np.ndarray:
    """
    由隶属度矩阵按行取最大值得到硬标签。

    Args:
        membership: 隶属度矩阵，形状为 [n_samples, n_clusters]

    Returns:
        np.ndarray: 硬标签，形状为 [n_samples]
    """
    return np.argmax(np.asarray(membership, dtype=float), axis=1)


def _split_labeling(
    labeling: np.ndarray
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    将输入区分为硬标签或隶属度矩阵。

    Returns:
        Tuple[np.ndarray, Optional[np.ndarray]]: (硬标签, 隶属度矩阵或None)
    """
    array = np.asarray(labeling)

    if array.ndim == 1:
        return array.astype(int), None
    if array.ndim == 2:
        membership = array.astype(float)
        return labels_from_membership(membership), membership

    raise InvalidInputError(f"标签必须是一维标签或二维隶属度矩阵，当前维度: {array.ndim}")


def _check_labels(distance: np.ndarray, labels: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    matrix = check_distance_matrix(distance)
    labels = np.asarray(labels)

    if labels.shape[0] != matrix.shape[0]:
        raise InvalidInputError(f"标签数量 ({labels.shape[0]}) 与样本数 ({matrix.shape[0]}) 不一致")

    n_labels = len(np.unique(labels))
    if n_labels < 2:
        raise InvalidInputError("至少需要2个簇才能计算聚类指标")

    return matrix, labels


def silhouette_values(distance: np.ndarray, labels: np.ndarray) -> np.ndarray:
    """
    计算每个样本的轮廓系数。

    公式：s = (b - a) / max(a, b)
    其中 a 为样本到同簇其他样本的平均距离，b 为到最近其他簇的平均距离。

    Args:
        distance: 距离矩阵
        labels: 硬标签

    Returns:
        np.ndarray: 每个样本的轮廓系数
    """
    matrix, labels = _check_labels(distance, labels)

    if len(np.unique(labels)) >= matrix.shape[0]:
        raise InvalidInputError("簇数量必须小于样本数才能计算轮廓系数")

    return metrics.silhouette_samples(matrix, labels, metric="precomputed")


def silhouette(distance: np.ndarray, labels: np.ndarray) -> float:
    """
    计算平均轮廓系数，取值范围为[-1, 1]，越大越好。

    Args:
        distance: 距离矩阵
        labels: 硬标签

    Returns:
        float: 平均轮廓系数
    """
    return float(np.mean(silhouette_values(distance, labels)))


def dunn_index(distance: np.ndarray, labels: np.ndarray) -> float:
    """
    计算 Dunn 指数。

    Dunn = 不同簇样本间的最小距离 / 簇内最大直径

    值越大越好，对异常值敏感。所有簇直径为0时返回无穷大。

    Args:
        distance: 距离矩阵
        labels: 硬标签

    Returns:
        float: Dunn 指数
    """
    matrix, labels = _check_labels(distance, labels)

    same_cluster = labels[:, np.newaxis] == labels[np.newaxis, :]

    min_inter = float(np.min(matrix[~same_cluster]))
    max_diameter = float(np.max(matrix[same_cluster]))

    if max_diameter <= 0:
        return float("inf")

    return min_inter / max_diameter


def calinski_harabasz(distance: np.ndarray, labels: np.ndarray) -> float:
    """
    按簇累加计算 Calinski-Harabasz 指数。

    利用欧氏距离的恒等式，由平方距离直接得到离差平方和：
        SS(C) = Σ_{i<j∈C} d_ij^2 / |C|
    总离差 T = SS(全体)，簇内离差 W = Σ_C SS(C)，簇间离差 B = T - W。

    公式：CH = (B / (k - 1)) / (W / (n - k))

    Args:
        distance: 欧氏距离矩阵
        labels: 硬标签

    Returns:
        float: CH 指数，簇内离差为0时返回1.0
    """
    matrix, labels = _check_labels(distance, labels)
    n = matrix.shape[0]
    squared = matrix ** 2

    total_ss = squared.sum() / (2.0 * n)

    within_ss = 0.0
    cluster_ids = np.unique(labels)
    for cluster_id in cluster_ids:
        members = np.where(labels == cluster_id)[0]
        block = squared[np.ix_(members, members)]
        within_ss += block.sum() / (2.0 * len(members))

    between_ss = total_ss - within_ss
    k = len(cluster_ids)

    if within_ss == 0.0:
        return 1.0

    return float((between_ss / (k - 1)) / (within_ss / (n - k)))


def calinski_harabasz_from_features(features: np.ndarray, labels: np.ndarray) -> float:
    """
    由特征矩阵以闭式计算 Calinski-Harabasz 指数。

    Args:
        features: 特征矩阵
        labels: 硬标签

    Returns:
        float: CH 指数
    """
    features = np.asarray(features, dtype=float)
    labels = np.asarray(labels)

    if len(np.unique(labels)) < 2:
        raise InvalidInputError("至少需要2个簇才能计算聚类指标")

    return float(metrics.calinski_harabasz_score(features, labels))


def assignment_entropy_values(membership: np.ndarray, eps: float = ENTROPY_EPS) -> np.ndarray:
    """
    计算每个样本的分配熵：-Σ_j u_ij * log(u_ij + eps)。
    """
    u = np.asarray(membership, dtype=float)
    return -np.sum(u * np.log(u + eps), axis=1)


def assignment_entropy(membership: np.ndarray, eps: float = ENTROPY_EPS) -> float:
    """
    计算平均分配熵。

    Args:
        membership: 隶属度矩阵
        eps: 防止 log(0) 的极小值

    Returns:
        float: 数据集上的平均分配熵
    """
    return float(np.mean(assignment_entropy_values(membership, eps)))


def partition_entropy(membership: np.ndarray, eps: float = ENTROPY_EPS) -> float:
    """
    计算划分熵（PE）。

    公式：PE = -(1/n) * Σ_i Σ_j u_ij * log(u_ij + eps)

    值越小表示划分越清晰。

    Args:
        membership: 隶属度矩阵，形状为 [n_samples, n_clusters]
        eps: 防止 log(0) 的极小值

    Returns:
        float: 划分熵
    """
    u = np.asarray(membership, dtype=float)
    n = u.shape[0]
    return float(-np.sum(u * np.log(u + eps)) / n)


def fuzzy_partition_coefficient(membership: np.ndarray) -> float:
    """
    计算模糊划分系数（FPC）。

    公式：FPC = (1/n) * Σ_i Σ_j u_ij^2

    对行和为1的隶属度矩阵，FPC 取值在 [1/k, 1]：
    1 表示硬划分（每行都是 one-hot），1/k 表示最大模糊。

    Args:
        membership: 隶属度矩阵

    Returns:
        float: 模糊划分系数
    """
    u = np.asarray(membership, dtype=float)
    return float(np.sum(u ** 2) / u.shape[0])


def compute_quality_metrics(
    distance: np.ndarray,
    labeling: np.ndarray,
    features: Optional[np.ndarray] = None
) -> Dict[str, float]:
    """
    计算一个划分的全部质量指标。

    Args:
        distance: 原始特征空间的距离矩阵
        labeling: 硬标签（一维）或隶属度矩阵（二维）
        features: 特征矩阵，可选；提供时额外计算闭式 CH 指数

    Returns:
        Dict[str, float]: 指标字典，包含 silhouette、dunn、calinski_harabasz，
            隶属度输入时还包含 partition_entropy、assignment_entropy、fpc

    Example:
        >>> D = pairwise_distances(X)
        >>> scores = compute_quality_metrics(D, result.membership)
        >>> scores['silhouette']
    """
    labels, membership = _split_labeling(labeling)

    results = {
        "silhouette": silhouette(distance, labels),
        "dunn": dunn_index(distance, labels),
        "calinski_harabasz": calinski_harabasz(distance, labels),
    }

    if features is not None:
        results["calinski_harabasz_closed_form"] = calinski_harabasz_from_features(features, labels)

    if membership is not None:
        results["partition_entropy"] = partition_entropy(membership)
        results["assignment_entropy"] = assignment_entropy(membership)
        results["fpc"] = fuzzy_partition_coefficient(membership)

    return results


class QualityEvaluator:
    """
    聚类质量综合评估类。

    该类封装了各种聚类指标的计算方法，
    可以一次性计算选定的指标并打印结构化结果。

    Attributes:
        hard_metrics (List[str]): 要计算的硬划分指标
        fuzzy_metrics (List[str]): 要计算的模糊划分指标
    """

    def __init__(
        self,
        hard_metrics: list = None,
        fuzzy_metrics: list = None
    ) -> None:
        """
        初始化评估器。

        Args:
            hard_metrics: 要计算的硬划分指标
            fuzzy_metrics: 要计算的模糊划分指标
        """
        if hard_metrics is None:
            hard_metrics = ['silhouette', 'dunn', 'calinski_harabasz']
        if fuzzy_metrics is None:
            fuzzy_metrics = ['partition_entropy', 'assignment_entropy', 'fpc']

        self.hard_metrics = hard_metrics
        self.fuzzy_metrics = fuzzy_metrics

    def evaluate(
        self,
        distance: np.ndarray,
        labeling: np.ndarray,
        features: Optional[np.ndarray] = None
    ) -> dict:
        """
        计算选定的评估指标。

        Args:
            distance: 距离矩阵
            labeling: 硬标签或隶属度矩阵
            features: 特征矩阵，可选

        Returns:
            dict: 包含各指标的字典
        """
        labels, membership = _split_labeling(labeling)
        results = {}

        if 'silhouette' in self.hard_metrics:
            results['silhouette'] = silhouette(distance, labels)

        if 'dunn' in self.hard_metrics:
            results['dunn'] = dunn_index(distance, labels)

        if 'calinski_harabasz' in self.hard_metrics:
            results['calinski_harabasz'] = calinski_harabasz(distance, labels)
            if features is not None:
                results['calinski_harabasz_closed_form'] = calinski_harabasz_from_features(features, labels)

        if membership is not None:
            if 'partition_entropy' in self.fuzzy_metrics:
                results['partition_entropy'] = partition_entropy(membership)
            if 'assignment_entropy' in self.fuzzy_metrics:
                results['assignment_entropy'] = assignment_entropy(membership)
            if 'fpc' in self.fuzzy_metrics:
                results['fpc'] = fuzzy_partition_coefficient(membership)

        return results

    def print_results(
        self,
        results: dict,
        title: str = 'clustering'
    ) -> None:
        """
        打印评估结果。

        Args:
            results: 评估结果字典
            title: 标题
        """
        print(f"\n{'='*50}")
        print(f"{title.upper()} 评估结果")
        print(f"{'='*50}")

        for metric, value in results.items():
            if value is not None:
                print(f"{metric.upper()}: {value:.4f}")

        print(f"{'='*50}\n")
