"""
距离计算模块

该模块负责计算欧氏距离矩阵，是相似度图、拉普拉斯矩阵、
聚类求解器和评估指标的共同基础。
"""

from typing import Union
import numpy as np
from scipy.spatial.distance import cdist, pdist, squareform

from ..data.base import FeatureMatrix, check_feature_array
from ..exceptions import InvalidInputError


def pairwise_distances(X: Union[np.ndarray, FeatureMatrix]) -> np.ndarray:
    """
    计算样本两两之间的欧氏距离矩阵。

    结果对称、非负、对角线为0。

    Args:
        X: 特征矩阵，形状为 [n_samples, n_features]

    Returns:
        np.ndarray: 距离矩阵，形状为 [n_samples, n_samples]

    Example:
        >>> X = np.array([[0, 0], [3, 4]])
        >>> pairwise_distances(X)
        array([[0., 5.],
               [5., 0.]])
    """
    array = check_feature_array(X)

    if array.shape[0] == 1:
        return np.zeros((1, 1))

    return squareform(pdist(array, metric="euclidean"))


def distances_to_centers(X: Union[np.ndarray, FeatureMatrix], centers: np.ndarray) -> np.ndarray:
    """
    计算每个样本到每个聚类中心的欧氏距离。

    Args:
        X: 特征矩阵，形状为 [n_samples, n_features]
        centers: 聚类中心，形状为 [n_clusters, n_features]

    Returns:
        np.ndarray: 距离矩阵，形状为 [n_samples, n_clusters]
    """
    array = check_feature_array(X)
    centers = np.atleast_2d(np.asarray(centers, dtype=float))

    if centers.shape[1] != array.shape[1]:
        raise InvalidInputError(f"聚类中心维度 ({centers.shape[1]}) 与特征维度 ({array.shape[1]}) 不一致")

    return cdist(array, centers, metric="euclidean")


def check_distance_matrix(distance: np.ndarray, name: str = "distance") -> np.ndarray:
    """
    校验距离（或相似度）矩阵为有限值的方阵。

    Args:
        distance: 待校验矩阵
        name: 参数名称

    Returns:
        np.ndarray: 浮点方阵

    Raises:
        InvalidInputError: 如果不是非空方阵或包含非有限值
    """
    matrix = np.asarray(distance, dtype=float)

    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise InvalidInputError(f"{name} 必须是方阵，当前形状: {matrix.shape}")
    if matrix.shape[0] == 0:
        raise InvalidInputError(f"{name} 不能为空")
    if not np.all(np.isfinite(matrix)):
        raise InvalidInputError(f"{name} 包含 NaN 或 Inf")

    return matrix


def median_offdiagonal(distance: np.ndarray) -> float:
    """
    计算距离矩阵非对角线元素的中位数。

    该值作为高斯核带宽与epsilon邻域半径扫描范围的基准尺度。

    Args:
        distance: 距离矩阵

    Returns:
        float: 非对角线距离的中位数
    """
    matrix = check_distance_matrix(distance)
    n = matrix.shape[0]

    if n < 2:
        raise InvalidInputError("至少需要2个样本才能计算距离中位数")

    upper = matrix[np.triu_indices(n, k=1)]
    return float(np.median(upper))
