"""
相似度图构建模块

该模块将距离矩阵转换为相似度（亲和力）矩阵，支持三种核函数：
- gaussian: 高斯核，全连接加权图
- epsilon: epsilon邻域图，距离不超过epsilon的点之间连边
- knn: k近邻图，每个点与最近的k个点连边，取与转置的逐元素最大值对称化

同时提供参数扫描所用的候选参数网格。
"""

from enum import Enum
from typing import List, Tuple, Union
import numpy as np

from .distance import check_distance_matrix, median_offdiagonal
from ..exceptions import InvalidInputError


class KernelType(Enum):
    """
    相似度核函数枚举类。
    """
    GAUSSIAN = "gaussian"
    EPSILON = "epsilon"
    KNN = "knn"


def _as_kernel(kernel: Union[str, KernelType]) -> KernelType:
    if isinstance(kernel, KernelType):
        return kernel
    try:
        return KernelType(str(kernel).lower())
    except ValueError:
        raise InvalidInputError(f"不支持的核函数: {kernel}") from None


def gaussian_similarity(distance: np.ndarray, sigma: float) -> np.ndarray:
    """
    高斯核相似度。

    公式：S[i, j] = exp(-D[i, j]^2 / (2 * sigma^2))

    对有限且非零的 sigma，结果对称且取值在 (0, 1]。

    Args:
        distance: 距离矩阵
        sigma: 核带宽，必须大于0

    Returns:
        np.ndarray: 相似度矩阵
    """
    matrix = check_distance_matrix(distance)

    if not np.isfinite(sigma) or sigma <= 0:
        raise InvalidInputError(f"sigma 必须是正的有限值，当前值: {sigma}")

    similarity = np.exp(-(matrix ** 2) / (2.0 * sigma ** 2))
    return 0.5 * (similarity + similarity.T)


def epsilon_similarity(distance: np.ndarray, epsilon: float) -> np.ndarray:
    """
    epsilon邻域相似度。

    D[i, j] <= epsilon 时 S[i, j] = 1，否则为0，再与转置取最大值。

    Args:
        distance: 距离矩阵
        epsilon: 邻域半径，必须非负

    Returns:
        np.ndarray: 0/1 相似度矩阵
    """
    matrix = check_distance_matrix(distance)

    if not np.isfinite(epsilon) or epsilon < 0:
        raise InvalidInputError(f"epsilon 必须是非负有限值，当前值: {epsilon}")

    similarity = (matrix <= epsilon).astype(float)
    return np.maximum(similarity, similarity.T)


def knn_adjacency(distance: np.ndarray, n_neighbors: int) -> np.ndarray:
    """
    单向k近邻邻接矩阵（未对称化）。

    第 i 行标记距离样本 i 最近的 n_neighbors 个样本（不含自身）。

    Args:
        distance: 距离矩阵
        n_neighbors: 近邻数量

    Returns:
        np.ndarray: 0/1 邻接矩阵，通常不对称
    """
    matrix = check_distance_matrix(distance)
    n = matrix.shape[0]

    n_neighbors = int(n_neighbors)
    if n_neighbors < 1 or n_neighbors > n - 1:
        raise InvalidInputError(f"n_neighbors 必须在[1, {n - 1}]范围内，当前值: {n_neighbors}")

    masked = matrix.copy()
    np.fill_diagonal(masked, np.inf)

    neighbor_idx = np.argsort(masked, axis=1, kind="stable")[:, :n_neighbors]

    adjacency = np.zeros((n, n))
    rows = np.repeat(np.arange(n), n_neighbors)
    adjacency[rows, neighbor_idx.ravel()] = 1.0

    return adjacency


def knn_similarity(distance: np.ndarray, n_neighbors: int) -> np.ndarray:
    """
    k近邻相似度。

    单向k近邻图与其转置取逐元素最大值，即只要任一方向是近邻就连边。

    Args:
        distance: 距离矩阵
        n_neighbors: 近邻数量

    Returns:
        np.ndarray: 对称的 0/1 相似度矩阵
    """
    adjacency = knn_adjacency(distance, n_neighbors)
    return np.maximum(adjacency, adjacency.T)


def build_similarity(
    distance: np.ndarray,
    kernel: Union[str, KernelType],
    parameter: float
) -> np.ndarray:
    """
    根据核函数类型构建相似度矩阵。

    对角线保留各核函数的自然取值（高斯、epsilon为1，knn为0），
    是否改写对角线由调用方（参数扫描或拉普拉斯构建）决定。

    Args:
        distance: 距离矩阵
        kernel: 核函数类型 ('gaussian', 'epsilon', 'knn')
        parameter: 核参数（sigma、epsilon 或近邻数）

    Returns:
        np.ndarray: 相似度矩阵

    Example:
        >>> D = pairwise_distances(X)
        >>> S = build_similarity(D, "gaussian", median_offdiagonal(D))
    """
    kernel_type = _as_kernel(kernel)

    if kernel_type == KernelType.GAUSSIAN:
        return gaussian_similarity(distance, float(parameter))
    elif kernel_type == KernelType.EPSILON:
        return epsilon_similarity(distance, float(parameter))
    else:
        if float(parameter) != int(parameter):
            raise InvalidInputError(f"knn 的近邻数必须为整数，当前值: {parameter}")
        return knn_similarity(distance, int(parameter))


def count_edges(similarity: np.ndarray) -> int:
    """
    统计图中非零的非对角线元素个数。
    """
    matrix = np.asarray(similarity)
    off_diagonal = ~np.eye(matrix.shape[0], dtype=bool)
    return int(np.count_nonzero(matrix[off_diagonal]))


def parameter_grid(
    distance: np.ndarray,
    kernel: Union[str, KernelType],
    n_points: int = 10,
    scale_range: Tuple[float, float] = (0.1, 2.0),
    max_neighbors: int = 15
) -> List[float]:
    """
    生成核参数的候选网格。

    - gaussian / epsilon: [0.1, 2.0] × 非对角线距离中位数，等间距 n_points 个点
    - knn: 整数 2..min(n-1, max_neighbors)

    Args:
        distance: 距离矩阵
        kernel: 核函数类型
        n_points: 连续参数的候选点数
        scale_range: 相对中位数的缩放范围
        max_neighbors: knn 近邻数上限

    Returns:
        List[float]: 候选参数列表
    """
    kernel_type = _as_kernel(kernel)
    matrix = check_distance_matrix(distance)

    if kernel_type == KernelType.KNN:
        upper = min(matrix.shape[0] - 1, max_neighbors)
        return [int(k) for k in range(2, upper + 1)]

    median = median_offdiagonal(matrix)
    scales = np.linspace(scale_range[0], scale_range[1], n_points)
    return [float(s * median) for s in scales]
