"""
聚类求解器基础模块

该模块定义了聚类求解器的配置基类、结果数据结构和抽象基类。
所有具体的求解器（k-means、FCM、PCM）都应该继承 BaseClusterer 并实现 fit 方法。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
import numpy as np

from ..data.base import FeatureMatrix, check_feature_array, check_n_clusters


@dataclass
class SolverConfig:
    """
    求解器通用配置类。

    Attributes:
        n_clusters (int): 聚类数量
        max_iter (int): 最大迭代次数
        random_state (int): 随机种子
        verbose (bool): 是否打印详细信息
    """
    n_clusters: int = 3
    max_iter: int = 300
    random_state: int = 42
    verbose: bool = False

    def __post_init__(self) -> None:
        """
        初始化后验证参数。
        """
        if self.n_clusters < 1:
            raise ValueError(f"n_clusters 必须大于0，当前值: {self.n_clusters}")
        if self.max_iter < 1:
            raise ValueError(f"max_iter 必须大于0，当前值: {self.max_iter}")


@dataclass
class ClusteringResult:
    """
    聚类结果。

    未收敛的结果通过 converged=False 明确标记，不会被当作完整结果返回。

    Attributes:
        labels (np.ndarray): 硬标签，形状为 [n_samples]
        centers (np.ndarray): 聚类中心，形状为 [n_clusters, n_features]
        membership (np.ndarray): 隶属度（或典型度）矩阵，形状为 [n_samples, n_clusters]
        distances (np.ndarray): 样本到中心的距离，形状为 [n_samples, n_clusters]
        iterations (int): 实际迭代次数
        converged (bool): 是否收敛
        center_diff (Optional[float]): 最后一次迭代的中心最大变化量
        inertia (Optional[float]): 簇内平方和
        eta (Optional[np.ndarray]): PCM 的簇带宽
        fpc (Optional[float]): 模糊划分系数
    """
    labels: np.ndarray
    centers: np.ndarray
    membership: np.ndarray
    distances: np.ndarray
    iterations: int
    converged: bool
    center_diff: Optional[float] = None
    inertia: Optional[float] = None
    eta: Optional[np.ndarray] = None
    fpc: Optional[float] = None

    @property
    def n_clusters(self) -> int:
        return self.centers.shape[0]

    def to_dict(self) -> Dict[str, Any]:
        """
        转换为字典。

        Returns:
            Dict[str, Any]: 结果字典
        """
        return {
            "labels": self.labels,
            "centers": self.centers,
            "membership": self.membership,
            "distances": self.distances,
            "iterations": self.iterations,
            "converged": self.converged,
            "center_diff": self.center_diff,
            "inertia": self.inertia,
            "eta": self.eta,
            "fpc": self.fpc,
        }


class BaseClusterer(ABC):
    """
    聚类求解器抽象基类。

    Attributes:
        config (SolverConfig): 求解器配置对象
        result_ (Optional[ClusteringResult]): 最近一次拟合的结果
    """

    def __init__(self, config: Optional[SolverConfig] = None) -> None:
        """
        初始化求解器。

        Args:
            config: 求解器配置对象
        """
        self.config = config if config is not None else SolverConfig()
        self.result_: Optional[ClusteringResult] = None

    def _prepare(self, X: Union[np.ndarray, FeatureMatrix]) -> np.ndarray:
        """
        校验输入数据与聚类数量。

        Args:
            X: 特征矩阵

        Returns:
            np.ndarray: 校验后的特征数组
        """
        array = check_feature_array(X)
        check_n_clusters(self.config.n_clusters, array.shape[0])
        return array

    @abstractmethod
    def fit(self, X: Union[np.ndarray, FeatureMatrix]) -> ClusteringResult:
        """
        拟合数据（由子类实现）。

        Args:
            X: 特征矩阵，形状为 [n_samples, n_features]

        Returns:
            ClusteringResult: 聚类结果
        """
        pass

    def fit_predict(self, X: Union[np.ndarray, FeatureMatrix]) -> np.ndarray:
        """
        拟合数据并返回硬标签。
        """
        return self.fit(X).labels
