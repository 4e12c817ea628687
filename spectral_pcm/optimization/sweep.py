"""
核参数扫描模块

该模块在三种核函数及其参数范围上搜索最优的相似度图配置。

每个候选 (核函数, 参数) 的评估流程：
1. 构建相似度矩阵，自相似度强制为1
2. 构建对称归一化拉普拉斯矩阵（保留自环）
3. 取最小的k个特征值对应的特征向量，按行归一化
4. 在嵌入上运行 k-means
5. 以原始特征空间距离计算平均轮廓系数作为得分

轮廓系数使用原始特征空间的距离，用以检验嵌入得到的簇在原始测量空间中是否一致。
单个候选评估失败时得分记为-1，扫描继续进行。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
import numpy as np

from .base import BaseSearch, SearchConfig
from ..clustering.spectral import SpectralClusterer, SpectralConfig
from ..data.base import FeatureMatrix, check_feature_array, check_n_clusters
from ..exceptions import InvalidInputError, ParameterEvaluationError
from ..graph.distance import pairwise_distances
from ..graph.similarity import KernelType, parameter_grid
from ..utils.metrics import silhouette

FAILED_SCORE = -1.0


@dataclass
class SweepConfig(SearchConfig):
    """
    核参数扫描配置类。

    Attributes:
        n_clusters (int): 聚类数量k
        kernels (Tuple[str, ...]): 参与扫描的核函数
        n_points (int): 连续参数的候选点数
        scale_range (Tuple[float, float]): 相对距离中位数的缩放范围
        max_neighbors (int): knn 近邻数上限
        laplacian (str): 拉普拉斯变体
        n_init (int): k-means 重启次数
    """
    n_clusters: int = 3
    kernels: Tuple[str, ...] = ("gaussian", "epsilon", "knn")
    n_points: int = 10
    scale_range: Tuple[float, float] = (0.1, 2.0)
    max_neighbors: int = 15
    laplacian: str = "normalized"
    n_init: int = 10

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.n_clusters < 2:
            raise ValueError(f"n_clusters 必须大于等于2，当前值: {self.n_clusters}")
        if not self.kernels:
            raise ValueError("kernels 至少需要一个核函数")
        valid = [k.value for k in KernelType]
        for kernel in self.kernels:
            if kernel not in valid:
                raise ValueError(f"不支持的核函数: {kernel}")
        if self.n_points < 1:
            raise ValueError(f"n_points 必须大于0，当前值: {self.n_points}")
        if not 0 < self.scale_range[0] <= self.scale_range[1]:
            raise ValueError(f"scale_range 非法: {self.scale_range}")


@dataclass
class SweepResult:
    """
    核参数扫描结果。

    Attributes:
        best_kernel (Optional[str]): 最优核函数
        best_parameter (Optional[float]): 最优参数
        best_score (float): 最优轮廓系数
        history (List[Dict]): 全部候选的评估记录
        timed_out (bool): 是否因超时提前终止
    """
    best_kernel: Optional[str]
    best_parameter: Optional[float]
    best_score: float
    history: List[Dict[str, Any]] = field(default_factory=list)
    timed_out: bool = False

    def scores_for(self, kernel: str) -> List[Tuple[float, float]]:
        """
        获取某个核函数的 (参数, 得分) 列表。
        """
        return [(r["parameter"], r["score"]) for r in self.history if r["kernel"] == kernel]


class KernelParameterSearch(BaseSearch):
    """
    核参数扫描器。

    Attributes:
        features (np.ndarray): 特征矩阵
        distance (np.ndarray): 原始特征空间距离矩阵（只计算一次）

    Example:
        >>> search = KernelParameterSearch(X, SweepConfig(n_clusters=3, verbose=False))
        >>> result = search.search()
        >>> result.best_kernel, result.best_parameter
    """

    description = "核参数扫描"

    def __init__(
        self,
        features: Union[np.ndarray, FeatureMatrix],
        config: Optional[SweepConfig] = None,
        distance: Optional[np.ndarray] = None
    ) -> None:
        super().__init__(config if config is not None else SweepConfig())
        self.features = check_feature_array(features)
        check_n_clusters(self.config.n_clusters, self.features.shape[0])

        if self.features.shape[0] < 3:
            raise InvalidInputError("参数扫描至少需要3个样本")

        self.distance = distance if distance is not None else pairwise_distances(self.features)

    def _candidates(self) -> List[Tuple[str, float]]:
        config = self.config
        candidates = []

        for kernel in config.kernels:
            grid = parameter_grid(
                self.distance,
                kernel,
                n_points=config.n_points,
                scale_range=config.scale_range,
                max_neighbors=config.max_neighbors,
            )
            candidates.extend((kernel, value) for value in grid)

        return candidates

    def _evaluate(self, candidate: Tuple[str, float], seed: int) -> Dict[str, Any]:
        kernel, parameter = candidate
        record = {"kernel": kernel, "parameter": parameter, "seed": seed}

        try:
            spectral_config = SpectralConfig(
                n_clusters=self.config.n_clusters,
                kernel=kernel,
                parameter=parameter,
                laplacian=self.config.laplacian,
                assign_labels="kmeans",
                drop_first=False,
                self_similarity=1.0,
                n_init=self.config.n_init,
                random_state=seed,
            )
            result = SpectralClusterer(spectral_config).fit(self.features, distance=self.distance)
            record["score"] = silhouette(self.distance, result.labels)
        except Exception as e:
            error = ParameterEvaluationError(kernel, parameter, e)
            if self.config.verbose:
                print(f"\n{error}")
            record["score"] = FAILED_SCORE
            record["error"] = str(error)

        return record

    def search(self) -> SweepResult:
        """
        执行扫描并返回最优配置。

        Returns:
            SweepResult: 扫描结果
        """
        history = self.run()

        if not history:
            return SweepResult(None, None, FAILED_SCORE, history, self.timed_out)

        best = max(history, key=lambda r: r["score"])

        if self.config.verbose:
            print(f"最优核函数: {best['kernel']}, 参数: {best['parameter']:.4f}, 轮廓系数: {best['score']:.4f}")

        return SweepResult(
            best_kernel=best["kernel"],
            best_parameter=best["parameter"],
            best_score=best["score"],
            history=history,
            timed_out=self.timed_out,
        )


def sweep_kernel_parameters(
    features: Union[np.ndarray, FeatureMatrix],
    n_clusters: int,
    distance: Optional[np.ndarray] = None,
    **options
) -> SweepResult:
    """
    核参数扫描的函数式接口。

    Args:
        features: 特征矩阵
        n_clusters: 聚类数量
        distance: 预先计算的距离矩阵，可选
        **options: SweepConfig 的其他字段

    Returns:
        SweepResult: 扫描结果
    """
    config = SweepConfig(n_clusters=n_clusters, **options)
    return KernelParameterSearch(features, config, distance=distance).search()
