"""
谱聚类流程模块

该模块串联完整的谱聚类流程：
特征矩阵 → 距离矩阵 → 相似度图 → 拉普拉斯矩阵 → 谱嵌入 → 划分求解器

划分求解器可选：
- kmeans: 硬 k-means（标准谱聚类）
- fcm: 模糊 c 均值（谱聚类 + FCM）
- pcm: 可能性 c 均值（谱聚类 + PCM）
"""

from dataclasses import dataclass
from typing import Optional, Union
import numpy as np

from .base import ClusteringResult, SolverConfig
from .fcm import FCMConfig, FuzzyCMeans
from .kmeans import HardKMeans, KMeansConfig
from .pcm import PCMConfig, PossibilisticCMeans
from ..data.base import FeatureMatrix, check_feature_array, check_n_clusters
from ..graph.distance import check_distance_matrix, pairwise_distances
from ..graph.embedding import spectral_embed
from ..graph.laplacian import LaplacianType, build_laplacian
from ..graph.similarity import KernelType, build_similarity

ASSIGN_METHODS = ("kmeans", "fcm", "pcm")


@dataclass
class SpectralConfig(SolverConfig):
    """
    谱聚类配置类。

    Attributes:
        kernel (str): 相似度核函数 ('gaussian', 'epsilon', 'knn')
        parameter (Optional[float]): 核参数（sigma、epsilon 或近邻数），必须显式给出
        laplacian (str): 拉普拉斯变体 ('unnormalized', 'normalized', 'random_walk')
        assign_labels (str): 嵌入上的划分求解器 ('kmeans', 'fcm', 'pcm')
        drop_first (bool): 是否跳过最小特征值对应的特征向量
        self_similarity (Optional[float]): 强制的自相似度；None 表示构建拉普拉斯时去除自环
        n_init (int): k-means 重启次数
        m (float): 模糊指数
        error (float): FCM 收敛阈值
        epsilon (float): PCM 收敛阈值
        eta_factor (float): PCM 带宽缩放因子
    """
    kernel: str = "gaussian"
    parameter: Optional[float] = None
    laplacian: str = "normalized"
    assign_labels: str = "kmeans"
    drop_first: bool = True
    self_similarity: Optional[float] = None
    n_init: int = 10
    m: float = 2.0
    error: float = 1e-5
    epsilon: float = 1e-5
    eta_factor: float = 1.5

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.parameter is None:
            raise ValueError("parameter 必须显式指定")
        if self.kernel not in [k.value for k in KernelType]:
            raise ValueError(f"不支持的核函数: {self.kernel}")
        if self.laplacian not in [v.value for v in LaplacianType]:
            raise ValueError(f"不支持的拉普拉斯变体: {self.laplacian}")
        if self.assign_labels not in ASSIGN_METHODS:
            raise ValueError(f"assign_labels 必须是 {ASSIGN_METHODS} 之一，当前值: {self.assign_labels}")
        if self.self_similarity is not None and not 0 <= self.self_similarity <= 1:
            raise ValueError(f"self_similarity 必须在[0,1]范围内，当前值: {self.self_similarity}")


@dataclass
class SpectralResult:
    """
    谱聚类结果。

    Attributes:
        labels (np.ndarray): 硬标签
        embedding (np.ndarray): 行归一化后的谱嵌入
        eigenvalues (np.ndarray): 拉普拉斯矩阵的全部特征值（升序）
        partition (ClusteringResult): 嵌入上划分求解器的结果
    """
    labels: np.ndarray
    embedding: np.ndarray
    eigenvalues: np.ndarray
    partition: ClusteringResult

    @property
    def membership(self) -> np.ndarray:
        return self.partition.membership


class SpectralClusterer:
    """
    谱聚类器。

    Attributes:
        config (SpectralConfig): 谱聚类配置
        result_ (Optional[SpectralResult]): 最近一次拟合结果

    Example:
        >>> D = pairwise_distances(X)
        >>> config = SpectralConfig(n_clusters=2, kernel="gaussian", parameter=median_offdiagonal(D))
        >>> result = SpectralClusterer(config).fit(X, distance=D)
        >>> result.labels
    """

    def __init__(self, config: SpectralConfig) -> None:
        self.config = config
        self.result_: Optional[SpectralResult] = None

    def _make_solver(self):
        """
        根据 assign_labels 创建嵌入上的划分求解器。
        """
        config = self.config
        common = dict(
            n_clusters=config.n_clusters,
            max_iter=config.max_iter,
            random_state=config.random_state,
            verbose=False,
        )

        if config.assign_labels == "fcm":
            return FuzzyCMeans(FCMConfig(m=config.m, error=config.error, **common))
        elif config.assign_labels == "pcm":
            return PossibilisticCMeans(
                PCMConfig(
                    m=config.m,
                    epsilon=config.epsilon,
                    eta_factor=config.eta_factor,
                    n_init=config.n_init,
                    **common,
                )
            )
        return HardKMeans(KMeansConfig(n_init=config.n_init, **common))

    def similarity_matrix(self, distance: np.ndarray) -> np.ndarray:
        """
        构建相似度矩阵，并按配置处理对角线。

        Args:
            distance: 距离矩阵

        Returns:
            np.ndarray: 相似度矩阵
        """
        similarity = build_similarity(distance, self.config.kernel, self.config.parameter)

        if self.config.self_similarity is not None:
            np.fill_diagonal(similarity, self.config.self_similarity)

        return similarity

    def fit(
        self,
        X: Union[np.ndarray, FeatureMatrix],
        distance: Optional[np.ndarray] = None
    ) -> SpectralResult:
        """
        执行谱聚类。

        Args:
            X: 特征矩阵
            distance: 预先计算的距离矩阵，可选

        Returns:
            SpectralResult: 谱聚类结果

        Raises:
            DegenerateGraphError: 如果相似度图存在孤立节点
            EigenDecompositionError: 如果特征分解失败
        """
        config = self.config
        array = check_feature_array(X)
        check_n_clusters(config.n_clusters, array.shape[0])

        if distance is None:
            distance = pairwise_distances(array)
        else:
            distance = check_distance_matrix(distance)

        similarity = self.similarity_matrix(distance)
        laplacian = build_laplacian(
            similarity,
            variant=config.laplacian,
            self_loops=config.self_similarity is not None,
        )
        embedded = spectral_embed(
            laplacian,
            n_components=config.n_clusters,
            drop_first=config.drop_first,
            symmetric=config.laplacian != LaplacianType.RANDOM_WALK.value,
        )

        partition = self._make_solver().fit(embedded.embedding)

        if config.verbose:
            sizes = np.bincount(partition.labels, minlength=config.n_clusters)
            print(f"谱聚类完成: 核函数={config.kernel}, 参数={config.parameter:.4f}, "
                  f"求解器={config.assign_labels}, 簇大小={sizes.tolist()}")

        self.result_ = SpectralResult(
            labels=partition.labels,
            embedding=embedded.embedding,
            eigenvalues=embedded.eigenvalues,
            partition=partition,
        )
        return self.result_
