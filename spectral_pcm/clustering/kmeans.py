"""
硬 k-means 求解器

对 scikit-learn KMeans 的封装，输出统一的 ClusteringResult。
隶属度矩阵为 one-hot 形式，便于与模糊求解器共用评估流程。
"""

from dataclasses import dataclass
from typing import Optional, Union
import numpy as np
from sklearn.cluster import KMeans

from .base import BaseClusterer, ClusteringResult, SolverConfig
from ..data.base import FeatureMatrix
from ..graph.distance import distances_to_centers


@dataclass
class KMeansConfig(SolverConfig):
    """
    k-means 配置类。

    Attributes:
        n_init (int): 不同初始中心的重启次数
    """
    n_init: int = 10

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.n_init < 1:
            raise ValueError(f"n_init 必须大于0，当前值: {self.n_init}")


def one_hot(labels: np.ndarray, n_clusters: int) -> np.ndarray:
    """
    将硬标签转换为 one-hot 隶属度矩阵。
    """
    membership = np.zeros((len(labels), n_clusters))
    membership[np.arange(len(labels)), labels] = 1.0
    return membership


class HardKMeans(BaseClusterer):
    """
    硬 k-means 求解器。

    Example:
        >>> solver = HardKMeans(KMeansConfig(n_clusters=3))
        >>> result = solver.fit(X)
        >>> result.inertia
    """

    def __init__(self, config: Optional[KMeansConfig] = None) -> None:
        super().__init__(config if config is not None else KMeansConfig())

    def fit(self, X: Union[np.ndarray, FeatureMatrix]) -> ClusteringResult:
        """
        拟合 k-means。

        Args:
            X: 特征矩阵

        Returns:
            ClusteringResult: 聚类结果
        """
        array = self._prepare(X)
        config = self.config

        kmeans = KMeans(
            n_clusters=config.n_clusters,
            n_init=config.n_init,
            max_iter=config.max_iter,
            random_state=config.random_state,
        )
        labels = kmeans.fit_predict(array)
        centers = kmeans.cluster_centers_

        self.result_ = ClusteringResult(
            labels=labels,
            centers=centers,
            membership=one_hot(labels, config.n_clusters),
            distances=distances_to_centers(array, centers),
            iterations=int(kmeans.n_iter_),
            converged=bool(kmeans.n_iter_ < config.max_iter),
            inertia=float(kmeans.inertia_),
        )

        if config.verbose:
            print(f"k-means 完成: k={config.n_clusters}, 迭代 {kmeans.n_iter_} 次, WSS={kmeans.inertia_:.4f}")

        return self.result_


def within_cluster_ss(X: np.ndarray, n_clusters: int, random_state: int = 42, n_init: int = 10) -> float:
    """
    计算给定聚类数下 k-means 的簇内平方和（WSS）。

    Args:
        X: 特征矩阵
        n_clusters: 聚类数量
        random_state: 随机种子
        n_init: 重启次数

    Returns:
        float: 簇内平方和
    """
    kmeans = KMeans(n_clusters=n_clusters, n_init=n_init, random_state=random_state)
    kmeans.fit(X)
    return float(kmeans.inertia_)
