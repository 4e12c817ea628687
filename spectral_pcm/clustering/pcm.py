"""
可能性 c 均值（PCM）求解器

PCM 放松了 FCM 的概率约束：样本对每个簇的典型度只取决于它到该簇中心的距离
和该簇自身的带宽 eta，与其他簇无关，因此一行典型度之和不必为1。
离群点对所有簇的典型度都很低，而不会像 FCM 那样被迫分摊隶属度。

算法步骤：
1. 用硬 k-means（固定重启次数）初始化中心，避免随机初始化导致的簇重合
2. 计算样本到中心的距离矩阵
3. 用 FCM 更新公式计算初始模糊隶属度 u
4. 计算每个簇的带宽：eta_j = Σ_i u_ij^m d_ij^2 / Σ_i u_ij^m，再乘以 eta_factor
5. 初始化典型度：t_ij = 1 / (1 + d_ij^2 / eta_j)
6. 迭代：以典型度为权重更新中心、重新计算距离和典型度（eta 固定），
   直到中心坐标的最大变化量小于 epsilon 或达到最大迭代次数
"""

from dataclasses import dataclass
from typing import Optional, Union
import warnings
import numpy as np
from sklearn.cluster import KMeans

from .base import BaseClusterer, ClusteringResult, SolverConfig
from .fcm import fuzzy_membership
from ..data.base import FeatureMatrix
from ..exceptions import InvalidInputError, SolverNonConvergenceWarning
from ..graph.distance import distances_to_centers

ETA_MIN_VALUE = 1e-10


@dataclass
class PCMConfig(SolverConfig):
    """
    PCM 配置类。

    Attributes:
        m (float): 模糊指数，用于初始隶属度与带宽计算
        epsilon (float): 收敛阈值（中心坐标最大变化量）
        eta_factor (float): 带宽缩放因子，放大影响区域以减少簇重合
        n_init (int): k-means 初始化的重启次数
        log_interval (int): 打印进度的迭代间隔
    """
    m: float = 2.0
    epsilon: float = 1e-5
    eta_factor: float = 1.5
    n_init: int = 10
    log_interval: int = 50

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.m <= 1:
            raise ValueError(f"m 必须大于1，当前值: {self.m}")
        if self.epsilon <= 0:
            raise ValueError(f"epsilon 必须大于0，当前值: {self.epsilon}")
        if self.eta_factor <= 0:
            raise ValueError(f"eta_factor 必须大于0，当前值: {self.eta_factor}")
        if self.n_init < 1:
            raise ValueError(f"n_init 必须大于0，当前值: {self.n_init}")
        if self.log_interval < 1:
            raise ValueError(f"log_interval 必须大于0，当前值: {self.log_interval}")


def compute_eta(
    distances: np.ndarray,
    membership: np.ndarray,
    m: float = 2.0,
    eta_factor: float = 1.5
) -> np.ndarray:
    """
    计算每个簇的带宽 eta。

    公式：eta_j = eta_factor * Σ_i (u_ij^m * d_ij^2) / Σ_i u_ij^m

    结果以 ETA_MIN_VALUE 为下限，避免典型度计算中的除零。

    Args:
        distances: 样本到中心的距离，形状为 [n_samples, n_clusters]
        membership: 模糊隶属度，形状为 [n_samples, n_clusters]
        m: 模糊指数
        eta_factor: 缩放因子

    Returns:
        np.ndarray: 带宽向量，形状为 [n_clusters]
    """
    weights = np.asarray(membership, dtype=float) ** m
    numerator = np.sum(weights * np.asarray(distances, dtype=float) ** 2, axis=0)
    denominator = np.sum(weights, axis=0)

    eta = np.zeros_like(numerator)
    valid = denominator > 0
    eta[valid] = numerator[valid] / denominator[valid]

    return np.maximum(eta * eta_factor, ETA_MIN_VALUE)


def typicality(distances: np.ndarray, eta: np.ndarray) -> np.ndarray:
    """
    计算可能性典型度。

    公式：t_ij = 1 / (1 + d_ij^2 / eta_j)

    Args:
        distances: 样本到中心的距离，形状为 [n_samples, n_clusters]
        eta: 簇带宽，形状为 [n_clusters]

    Returns:
        np.ndarray: 典型度矩阵，取值在 (0, 1]，行和不受约束
    """
    return 1.0 / (1.0 + np.asarray(distances, dtype=float) ** 2 / eta[np.newaxis, :])


def update_centers(X: np.ndarray, typicalities: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """
    以典型度为权重更新中心。

    某簇典型度之和为0时保留该簇原中心。

    Args:
        X: 特征矩阵
        typicalities: 典型度矩阵
        centers: 当前中心

    Returns:
        np.ndarray: 新中心
    """
    new_centers = centers.copy()
    weight_sums = typicalities.sum(axis=0)

    for j in range(centers.shape[0]):
        if weight_sums[j] > 0:
            new_centers[j] = typicalities[:, j] @ X / weight_sums[j]

    return new_centers


class PossibilisticCMeans(BaseClusterer):
    """
    可能性 c 均值求解器。

    Attributes:
        config (PCMConfig): PCM 配置
        result_ (Optional[ClusteringResult]): 最近一次拟合结果，eta 字段保存带宽

    Example:
        >>> pcm = PossibilisticCMeans(PCMConfig(n_clusters=2))
        >>> result = pcm.fit(X)
        >>> result.membership.sum(axis=1)  # 不必为1
    """

    def __init__(self, config: Optional[PCMConfig] = None) -> None:
        super().__init__(config if config is not None else PCMConfig())

    def _initial_centers(self, X: np.ndarray) -> np.ndarray:
        """
        用硬 k-means 初始化中心。
        """
        kmeans = KMeans(
            n_clusters=self.config.n_clusters,
            n_init=self.config.n_init,
            random_state=self.config.random_state,
        )
        kmeans.fit(X)
        return kmeans.cluster_centers_.copy()

    def fit(
        self,
        X: Union[np.ndarray, FeatureMatrix],
        initial_centers: Optional[np.ndarray] = None,
        eta: Optional[np.ndarray] = None
    ) -> ClusteringResult:
        """
        拟合 PCM。

        Args:
            X: 特征矩阵，形状为 [n_samples, n_features]
            initial_centers: 初始中心，提供时跳过 k-means 初始化
            eta: 簇带宽，提供时跳过由模糊隶属度估计带宽的步骤

        Returns:
            ClusteringResult: 聚类结果，membership 为典型度矩阵，
                达到最大迭代次数时 converged=False
        """
        array = self._prepare(X)
        config = self.config
        k = config.n_clusters

        if initial_centers is None:
            centers = self._initial_centers(array)
        else:
            centers = np.array(initial_centers, dtype=float)
            if centers.shape != (k, array.shape[1]):
                raise InvalidInputError(
                    f"initial_centers 形状应为 {(k, array.shape[1])}，当前形状: {centers.shape}"
                )

        distances = distances_to_centers(array, centers)

        if eta is None:
            membership = fuzzy_membership(distances, config.m)
            eta = compute_eta(distances, membership, config.m, config.eta_factor)
        else:
            eta = np.maximum(np.asarray(eta, dtype=float), ETA_MIN_VALUE)
            if eta.shape != (k,):
                raise InvalidInputError(f"eta 形状应为 {(k,)}，当前形状: {eta.shape}")

        typicalities = typicality(distances, eta)

        converged = False
        center_diff = float("inf")
        iteration = 0

        for iteration in range(1, config.max_iter + 1):
            new_centers = update_centers(array, typicalities, centers)
            center_diff = float(np.max(np.abs(new_centers - centers)))
            centers = new_centers

            distances = distances_to_centers(array, centers)
            typicalities = typicality(distances, eta)

            if config.verbose and iteration % config.log_interval == 0:
                print(f"PCM 迭代 {iteration}/{config.max_iter}, 中心变化量: {center_diff:.6e}")

            if center_diff < config.epsilon:
                converged = True
                break

        if not converged:
            warnings.warn(
                f"PCM 在 {config.max_iter} 次迭代内未收敛 (k={k}, 中心变化量={center_diff:.3e})",
                SolverNonConvergenceWarning,
            )

        if config.verbose:
            status = "收敛" if converged else "未收敛"
            print(f"PCM 完成: k={k}, 迭代 {iteration} 次, 状态: {status}")

        self.result_ = ClusteringResult(
            labels=np.argmax(typicalities, axis=1),
            centers=centers,
            membership=typicalities,
            distances=distances,
            iterations=iteration,
            converged=converged,
            center_diff=center_diff,
            eta=eta,
        )
        return self.result_


def run_pcm(
    features: Union[np.ndarray, FeatureMatrix],
    n_clusters: int,
    m: float = 2.0,
    max_iter: int = 300,
    epsilon: float = 1e-5,
    eta_factor: float = 1.5,
    random_state: int = 42,
    verbose: bool = False
) -> ClusteringResult:
    """
    运行 PCM 的函数式接口。

    Args:
        features: 特征矩阵
        n_clusters: 聚类数量
        m: 模糊指数
        max_iter: 最大迭代次数
        epsilon: 收敛阈值
        eta_factor: 带宽缩放因子
        random_state: k-means 初始化的随机种子
        verbose: 是否打印详细信息

    Returns:
        ClusteringResult: 聚类结果
    """
    config = PCMConfig(
        n_clusters=n_clusters,
        m=m,
        max_iter=max_iter,
        epsilon=epsilon,
        eta_factor=eta_factor,
        random_state=random_state,
        verbose=verbose,
    )
    return PossibilisticCMeans(config).fit(features)
