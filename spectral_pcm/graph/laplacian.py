"""
拉普拉斯矩阵构建模块

该模块根据相似度矩阵构建三种图拉普拉斯矩阵：
- unnormalized: L = D - S
- normalized:   L = I - D^{-1/2} S D^{-1/2}（对称归一化）
- random_walk:  L = I - D^{-1} S（随机游走归一化，不对称）

其中 D 为度矩阵，度为相似度矩阵的行和。
归一化变体要求每个节点的度都大于0，否则会出现除零，
此时抛出 DegenerateGraphError 而不是返回 NaN/Inf。
"""

from enum import Enum
from typing import Union
import numpy as np

from .distance import check_distance_matrix
from ..exceptions import DegenerateGraphError, InvalidInputError


class LaplacianType(Enum):
    """
    拉普拉斯矩阵变体枚举类。
    """
    UNNORMALIZED = "unnormalized"
    NORMALIZED = "normalized"
    RANDOM_WALK = "random_walk"


def _as_variant(variant: Union[str, LaplacianType]) -> LaplacianType:
    if isinstance(variant, LaplacianType):
        return variant
    try:
        return LaplacianType(str(variant).lower())
    except ValueError:
        raise InvalidInputError(f"不支持的拉普拉斯变体: {variant}") from None


def degree_vector(similarity: np.ndarray) -> np.ndarray:
    """
    计算度向量（相似度矩阵的行和）。

    Args:
        similarity: 相似度矩阵

    Returns:
        np.ndarray: 度向量，形状为 [n_samples]
    """
    return np.asarray(similarity, dtype=float).sum(axis=1)


def build_laplacian(
    similarity: np.ndarray,
    variant: Union[str, LaplacianType] = LaplacianType.NORMALIZED,
    self_loops: bool = False
) -> np.ndarray:
    """
    构建图拉普拉斯矩阵。

    默认将相似度矩阵对角线置0（不含自环）；参数扫描时自相似度被强制为1，
    需传入 self_loops=True 以保留该约定。

    Args:
        similarity: 相似度矩阵，形状为 [n_samples, n_samples]
        variant: 拉普拉斯变体 ('unnormalized', 'normalized', 'random_walk')
        self_loops: 是否保留对角线上的自相似度

    Returns:
        np.ndarray: 拉普拉斯矩阵

    Raises:
        InvalidInputError: 如果输入不是有限值方阵或包含负权重
        DegenerateGraphError: 如果图为空，或归一化变体中存在度为0的孤立节点

    Example:
        >>> S = build_similarity(D, "gaussian", 1.0)
        >>> L = build_laplacian(S, "normalized")
    """
    variant_type = _as_variant(variant)
    weights = check_distance_matrix(similarity, name="similarity").copy()

    if np.any(weights < 0):
        raise InvalidInputError("相似度矩阵不能包含负权重")

    if not self_loops:
        np.fill_diagonal(weights, 0.0)

    degrees = degree_vector(weights)

    if not np.any(degrees > 0):
        raise DegenerateGraphError("相似度图没有任何边")

    n = weights.shape[0]

    if variant_type == LaplacianType.UNNORMALIZED:
        return np.diag(degrees) - weights

    isolated = np.where(degrees <= 0)[0]
    if len(isolated) > 0:
        raise DegenerateGraphError(
            f"存在度为0的孤立节点，无法构建 {variant_type.value} 拉普拉斯矩阵，节点索引: {isolated.tolist()}"
        )

    if variant_type == LaplacianType.NORMALIZED:
        inv_sqrt = 1.0 / np.sqrt(degrees)
        normalized = inv_sqrt[:, np.newaxis] * weights * inv_sqrt[np.newaxis, :]
        laplacian = np.eye(n) - normalized
        return 0.5 * (laplacian + laplacian.T)

    return np.eye(n) - weights / degrees[:, np.newaxis]
