"""
聚类数量选择模块

该模块在给定的k范围内为聚类数量打分并选出最优k，支持以下方法：
- elbow: 肘部法，基于 k-means 簇内平方和（WSS）的下降率
- gap: Gap 统计量，基于均匀参考分布的重采样（Tibshirani 规则）
- stability: 模糊/可能性稳定性法，重复运行 FCM/PCM 取平均轮廓系数
- eigengap: 特征间隙法，基于归一化拉普拉斯矩阵的谱

不同方法可能给出不同的k，由调用方决定采用哪一个。
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union
import warnings
import numpy as np

from .base import BaseSearch, SearchConfig
from ..clustering.fcm import FCMConfig, FuzzyCMeans
from ..clustering.kmeans import within_cluster_ss
from ..clustering.pcm import PCMConfig, PossibilisticCMeans
from ..data.base import FeatureMatrix, check_feature_array, check_n_clusters
from ..exceptions import InvalidInputError, SolverNonConvergenceWarning
from ..graph.distance import pairwise_distances
from ..graph.embedding import eigendecompose, eigengap_estimate
from ..graph.laplacian import build_laplacian
from ..graph.similarity import build_similarity
from ..utils.metrics import silhouette

SELECTION_METHODS = ("elbow", "gap", "stability", "eigengap")
WSS_MIN_VALUE = 1e-12


@dataclass
class SelectionConfig(SearchConfig):
    """
    聚类数量选择配置类。

    Attributes:
        n_init (int): k-means 重启次数
        rate_threshold (float): 肘部法的下降率阈值
        n_references (int): Gap 统计量的参考数据集数量B
        runs (int): 稳定性法每个k的重复次数
        solver (str): 稳定性法使用的模糊求解器 ('fcm' 或 'pcm')
        m (float): 模糊指数
        error (float): FCM 收敛阈值
        epsilon (float): PCM 收敛阈值
        eta_factor (float): PCM 带宽缩放因子
        max_iter (int): 模糊求解器最大迭代次数
        kernel (str): 特征间隙法使用的核函数
        parameter (Optional[float]): 特征间隙法使用的核参数
    """
    n_init: int = 10
    rate_threshold: float = 0.2
    n_references: int = 10
    runs: int = 5
    solver: str = "fcm"
    m: float = 2.0
    error: float = 1e-5
    epsilon: float = 1e-5
    eta_factor: float = 1.5
    max_iter: int = 300
    kernel: str = "gaussian"
    parameter: Optional[float] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.n_init < 1:
            raise ValueError(f"n_init 必须大于0，当前值: {self.n_init}")
        if self.rate_threshold <= 0:
            raise ValueError(f"rate_threshold 必须大于0，当前值: {self.rate_threshold}")
        if self.n_references < 1:
            raise ValueError(f"n_references 必须大于0，当前值: {self.n_references}")
        if self.runs < 1:
            raise ValueError(f"runs 必须大于0，当前值: {self.runs}")
        if self.solver not in ("fcm", "pcm"):
            raise ValueError(f"solver 必须是 'fcm' 或 'pcm'，当前值: {self.solver}")


@dataclass
class SelectionResult:
    """
    聚类数量选择结果。

    Attributes:
        optimal_k (Optional[int]): 选出的聚类数量，超时且未评估任何候选时为 None
        method (str): 选择方法
        k_values (List[int]): 实际评估的k值
        diagnostics (Dict[str, Any]): 各方法的辅助量（WSS、Gap、SE、平均轮廓系数等）
        timed_out (bool): 是否因超时提前终止
    """
    optimal_k: Optional[int]
    method: str
    k_values: List[int] = field(default_factory=list)
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    timed_out: bool = False


def _check_k_range(k_range: Iterable[int], n_samples: int, min_k: int = 1) -> List[int]:
    k_values = sorted(set(int(k) for k in k_range))

    if not k_values:
        raise InvalidInputError("k_range 不能为空")
    if k_values[0] < min_k:
        raise InvalidInputError(f"k_range 中的k必须大于等于{min_k}，当前最小值: {k_values[0]}")

    for k in k_values:
        check_n_clusters(k, n_samples)

    return k_values


def elbow_decision(k_values: List[int], wss: np.ndarray, rate_threshold: float = 0.2) -> int:
    """
    肘部法决策规则。

    1. 相邻差分 diff_k = W_k - W_{k+1}，下降率 rate_k = diff_k / W_k
    2. 取第一个满足 |rate_k| < rate_threshold 的k
    3. 若不存在，取 WSS 二阶差分绝对值最大处（偏移一位对齐k值）
    4. 结果不超过最大k

    Args:
        k_values: 升序的k值
        wss: 对应的簇内平方和
        rate_threshold: 下降率阈值

    Returns:
        int: 选出的k
    """
    wss = np.asarray(wss, dtype=float)

    if len(k_values) < 2:
        return k_values[0]

    diffs = wss[:-1] - wss[1:]
    rates = diffs / np.maximum(wss[:-1], WSS_MIN_VALUE)

    below = np.where(np.abs(rates) < rate_threshold)[0]
    if len(below) > 0:
        return k_values[below[0]]

    if len(wss) >= 3:
        curvature = np.abs(np.diff(wss, n=2))
        index = int(np.argmax(curvature)) + 1
        return min(k_values[index], k_values[-1])

    return k_values[-1]


def gap_decision(k_values: List[int], gaps: np.ndarray, standard_errors: np.ndarray) -> int:
    """
    Gap 统计量决策规则（Tibshirani）。

    取满足 Gap(k) >= Gap(k+1) - SE(k+1) 的最小k；若不存在则取 Gap 最大的k。

    Args:
        k_values: 升序的k值
        gaps: Gap 统计量
        standard_errors: 标准误 SE

    Returns:
        int: 选出的k
    """
    for i in range(len(k_values) - 1):
        if gaps[i] >= gaps[i + 1] - standard_errors[i + 1]:
            return k_values[i]

    return k_values[int(np.argmax(gaps))]


class _KRangeSearch(BaseSearch):
    """
    在k范围上逐个评估的搜索器基类。
    """

    method = ""
    min_k = 1

    def __init__(
        self,
        features: Union[np.ndarray, FeatureMatrix],
        k_range: Iterable[int],
        config: Optional[SelectionConfig] = None
    ) -> None:
        super().__init__(config if config is not None else SelectionConfig())
        self.features = check_feature_array(features)
        self.k_values = _check_k_range(k_range, self.features.shape[0], self.min_k)

    def _candidates(self) -> List[int]:
        return self.k_values

    @abstractmethod
    def _decide(self, k_values: List[int]) -> int:
        """
        根据评估历史选出最优k（由子类实现）。
        """
        pass

    def select(self) -> SelectionResult:
        """
        执行搜索并选出最优k。

        Returns:
            SelectionResult: 选择结果
        """
        history = self.run()
        k_values = [r["k"] for r in history]

        diagnostics: Dict[str, Any] = {}
        for record in history:
            for key, value in record.items():
                if key in ("k", "time"):
                    continue
                diagnostics.setdefault(key, []).append(value)

        optimal_k = self._decide(k_values) if k_values else None

        if self.config.verbose and optimal_k is not None:
            print(f"{self.description}: 最优k = {optimal_k}")

        return SelectionResult(
            optimal_k=optimal_k,
            method=self.method,
            k_values=k_values,
            diagnostics=diagnostics,
            timed_out=self.timed_out,
        )


class ElbowSelector(_KRangeSearch):
    """
    肘部法选择器。

    对每个k运行 k-means 并记录簇内平方和（WSS）。
    """

    description = "肘部法"
    method = "elbow"

    def _evaluate(self, candidate: int, seed: int) -> Dict[str, Any]:
        wss = within_cluster_ss(self.features, candidate, random_state=seed, n_init=self.config.n_init)
        return {"k": candidate, "wss": wss, "score": wss}

    def _decide(self, k_values: List[int]) -> int:
        wss = np.array([r["wss"] for r in self.history])
        return elbow_decision(k_values, wss, self.config.rate_threshold)


class GapStatisticSelector(_KRangeSearch):
    """
    Gap 统计量选择器。

    参考数据集在数据的逐特征取值范围内均匀采样，共B个，
    所有k共用同一组参考数据集（由 random_state + b 固定生成）。

    Gap(k) = mean_b(log W*_kb) - log W_k
    SE(k) = sd_b(log W*_kb) * sqrt(1 + 1/B)
    """

    description = "Gap统计量"
    method = "gap"

    def __init__(
        self,
        features: Union[np.ndarray, FeatureMatrix],
        k_range: Iterable[int],
        config: Optional[SelectionConfig] = None
    ) -> None:
        super().__init__(features, k_range, config)
        self.references = self._make_references()

    def _make_references(self) -> List[np.ndarray]:
        lower = self.features.min(axis=0)
        upper = self.features.max(axis=0)
        references = []

        for b in range(self.config.n_references):
            rng = np.random.default_rng(self.config.random_state + b)
            references.append(rng.uniform(lower, upper, size=self.features.shape))

        return references

    def _evaluate(self, candidate: int, seed: int) -> Dict[str, Any]:
        n_init = self.config.n_init
        log_wss = np.log(max(within_cluster_ss(self.features, candidate, seed, n_init), WSS_MIN_VALUE))

        log_ref = np.array([
            np.log(max(within_cluster_ss(ref, candidate, seed, n_init), WSS_MIN_VALUE))
            for ref in self.references
        ])

        n_refs = len(log_ref)
        gap = float(np.mean(log_ref) - log_wss)
        se = float(np.std(log_ref) * np.sqrt(1.0 + 1.0 / n_refs))

        return {"k": candidate, "gap": gap, "se": se, "log_wss": float(log_wss), "score": gap}

    def _decide(self, k_values: List[int]) -> int:
        gaps = np.array([r["gap"] for r in self.history])
        standard_errors = np.array([r["se"] for r in self.history])
        return gap_decision(k_values, gaps, standard_errors)


class StabilitySelector(_KRangeSearch):
    """
    模糊/可能性稳定性选择器。

    对每个k重复运行 FCM 或 PCM（每次使用不同的固定种子），
    以 arg-max 标签在原始距离矩阵上的平均轮廓系数作为得分，取得分最大的k。
    只得到一个簇的运行记为-1。
    """

    description = "稳定性法"
    method = "stability"
    min_k = 2

    def __init__(
        self,
        features: Union[np.ndarray, FeatureMatrix],
        k_range: Iterable[int],
        config: Optional[SelectionConfig] = None,
        distance: Optional[np.ndarray] = None
    ) -> None:
        super().__init__(features, k_range, config)
        self.distance = distance if distance is not None else pairwise_distances(self.features)

    def _make_solver(self, k: int, seed: int):
        config = self.config
        if config.solver == "pcm":
            return PossibilisticCMeans(PCMConfig(
                n_clusters=k,
                m=config.m,
                epsilon=config.epsilon,
                eta_factor=config.eta_factor,
                max_iter=config.max_iter,
                n_init=config.n_init,
                random_state=seed,
            ))
        return FuzzyCMeans(FCMConfig(
            n_clusters=k,
            m=config.m,
            error=config.error,
            max_iter=config.max_iter,
            random_state=seed,
        ))

    def _evaluate(self, candidate: int, seed: int) -> Dict[str, Any]:
        runs = self.config.runs
        scores = []

        for run in range(runs):
            run_seed = seed * runs + run

            with warnings.catch_warnings():
                warnings.simplefilter("ignore", SolverNonConvergenceWarning)
                result = self._make_solver(candidate, run_seed).fit(self.features)

            if len(np.unique(result.labels)) < 2:
                scores.append(-1.0)
            else:
                scores.append(silhouette(self.distance, result.labels))

        return {
            "k": candidate,
            "silhouette": float(np.mean(scores)),
            "silhouette_std": float(np.std(scores)),
            "score": float(np.mean(scores)),
        }

    def _decide(self, k_values: List[int]) -> int:
        means = [r["silhouette"] for r in self.history]
        return k_values[int(np.argmax(means))]


def select_k_eigengap(
    features: Union[np.ndarray, FeatureMatrix],
    k_range: Iterable[int],
    config: Optional[SelectionConfig] = None,
    distance: Optional[np.ndarray] = None
) -> SelectionResult:
    """
    特征间隙法选择聚类数量。

    在归一化拉普拉斯矩阵的升序特征值中，取k范围内 lambda_{k+1} - lambda_k 最大的k。

    Args:
        features: 特征矩阵
        k_range: k的候选范围
        config: 选择配置，必须给出 kernel 与 parameter
        distance: 预先计算的距离矩阵，可选

    Returns:
        SelectionResult: 选择结果
    """
    config = config if config is not None else SelectionConfig()
    array = check_feature_array(features)
    k_values = _check_k_range(k_range, array.shape[0])

    if config.parameter is None:
        raise InvalidInputError("特征间隙法需要显式指定核参数 parameter")

    if distance is None:
        distance = pairwise_distances(array)

    similarity = build_similarity(distance, config.kernel, config.parameter)
    laplacian = build_laplacian(similarity, "normalized")
    eigenvalues, _ = eigendecompose(laplacian, symmetric=True)

    optimal_k = eigengap_estimate(eigenvalues, min_k=k_values[0], max_k=k_values[-1])

    if config.verbose:
        print(f"特征间隙法: 最优k = {optimal_k}")

    return SelectionResult(
        optimal_k=optimal_k,
        method="eigengap",
        k_values=k_values,
        diagnostics={
            "eigenvalues": eigenvalues[:k_values[-1] + 1].tolist(),
            "gaps": np.diff(eigenvalues[:k_values[-1] + 1]).tolist(),
        },
    )


def select_k(
    features: Union[np.ndarray, FeatureMatrix],
    method: str,
    k_range: Iterable[int],
    distance: Optional[np.ndarray] = None,
    **options
) -> SelectionResult:
    """
    选择最优聚类数量。

    Args:
        features: 特征矩阵或谱嵌入
        method: 选择方法 ('elbow', 'gap', 'stability', 'eigengap')
        k_range: k的候选范围，如 range(1, 11)
        distance: 预先计算的距离矩阵，可选（stability 与 eigengap 使用）
        **options: SelectionConfig 的字段

    Returns:
        SelectionResult: 选择结果

    Raises:
        InvalidInputError: 如果方法名称或选项非法

    Example:
        >>> result = select_k(X, "elbow", range(1, 11), verbose=False)
        >>> result.optimal_k
    """
    if method not in SELECTION_METHODS:
        raise InvalidInputError(f"不支持的选择方法: {method}，可选: {SELECTION_METHODS}")

    try:
        config = SelectionConfig(**options)
    except TypeError as e:
        raise InvalidInputError(f"非法的选择选项: {e}") from e

    if method == "elbow":
        return ElbowSelector(features, k_range, config).select()
    elif method == "gap":
        return GapStatisticSelector(features, k_range, config).select()
    elif method == "stability":
        return StabilitySelector(features, k_range, config, distance=distance).select()
    return select_k_eigengap(features, k_range, config, distance=distance)
