"""
模糊 c 均值（FCM）求解器

对 scikit-fuzzy 的 cmeans 的封装。FCM 的隶属度满足概率约束，
每个样本对所有簇的隶属度之和为1。

同时提供由距离矩阵计算 FCM 隶属度的函数，供 PCM 初始化使用。
"""

from dataclasses import dataclass
from typing import Optional, Union
import warnings
import numpy as np
import skfuzzy as fuzz

from .base import BaseClusterer, ClusteringResult, SolverConfig
from ..data.base import FeatureMatrix
from ..exceptions import SolverNonConvergenceWarning


@dataclass
class FCMConfig(SolverConfig):
    """
    FCM 配置类。

    Attributes:
        m (float): 模糊指数，必须大于1
        error (float): 收敛阈值（隶属度变化的范数）
    """
    m: float = 2.0
    error: float = 1e-5

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.m <= 1:
            raise ValueError(f"m 必须大于1，当前值: {self.m}")
        if self.error <= 0:
            raise ValueError(f"error 必须大于0，当前值: {self.error}")


def fuzzy_membership(distances: np.ndarray, m: float = 2.0) -> np.ndarray:
    """
    由样本到中心的距离计算 FCM 隶属度。

    公式：u_ij = 1 / Σ_l (d_ij / d_il)^(2/(m-1))

    若某样本到某中心的距离恰为0，该样本对该簇隶属度为1，其余为0。

    Args:
        distances: 距离矩阵，形状为 [n_samples, n_clusters]
        m: 模糊指数

    Returns:
        np.ndarray: 隶属度矩阵，每行和为1
    """
    d = np.asarray(distances, dtype=float)
    membership = np.zeros_like(d)

    zero_mask = d == 0
    exact_rows = np.any(zero_mask, axis=1)

    if np.any(exact_rows):
        first_zero = np.argmax(zero_mask[exact_rows], axis=1)
        membership[np.where(exact_rows)[0], first_zero] = 1.0

    regular = ~exact_rows
    if np.any(regular):
        d_reg = d[regular]
        exponent = 2.0 / (m - 1.0)
        ratio = (d_reg[:, :, np.newaxis] / d_reg[:, np.newaxis, :]) ** exponent
        membership[regular] = 1.0 / ratio.sum(axis=2)

    return membership


class FuzzyCMeans(BaseClusterer):
    """
    模糊 c 均值求解器。

    Example:
        >>> solver = FuzzyCMeans(FCMConfig(n_clusters=3, random_state=0))
        >>> result = solver.fit(X)
        >>> result.membership.sum(axis=1)  # 全为1
    """

    def __init__(self, config: Optional[FCMConfig] = None) -> None:
        super().__init__(config if config is not None else FCMConfig())

    def fit(self, X: Union[np.ndarray, FeatureMatrix]) -> ClusteringResult:
        """
        拟合 FCM。

        Args:
            X: 特征矩阵

        Returns:
            ClusteringResult: 聚类结果，membership 每行和为1
        """
        array = self._prepare(X)
        config = self.config

        # skfuzzy 要求输入形状为 [n_features, n_samples]
        centers, u, _, d, _, iterations, fpc = fuzz.cluster.cmeans(
            array.T,
            c=config.n_clusters,
            m=config.m,
            error=config.error,
            maxiter=config.max_iter,
            init=None,
            seed=config.random_state,
        )

        membership = u.T
        # cmeans 在收敛时提前退出；用满 max_iter 次视为未收敛
        converged = bool(iterations < config.max_iter)

        if not converged:
            warnings.warn(
                f"FCM 在 {config.max_iter} 次迭代内未收敛 (k={config.n_clusters})",
                SolverNonConvergenceWarning,
            )

        self.result_ = ClusteringResult(
            labels=np.argmax(membership, axis=1),
            centers=centers,
            membership=membership,
            distances=d.T,
            iterations=int(iterations),
            converged=converged,
            fpc=float(fpc),
        )

        if config.verbose:
            print(f"FCM 完成: k={config.n_clusters}, 迭代 {iterations} 次, FPC={fpc:.4f}")

        return self.result_
