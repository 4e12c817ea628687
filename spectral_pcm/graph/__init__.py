"""
图模块

该模块提供谱聚类所需的图计算功能，包括：
- 欧氏距离矩阵
- 相似度图构建（高斯、epsilon邻域、k近邻）
- 拉普拉斯矩阵构建
- 谱嵌入
"""

from .distance import pairwise_distances, distances_to_centers, median_offdiagonal
from .similarity import (
    KernelType,
    build_similarity,
    gaussian_similarity,
    epsilon_similarity,
    knn_adjacency,
    knn_similarity,
    count_edges,
    parameter_grid,
)
from .laplacian import LaplacianType, build_laplacian, degree_vector
from .embedding import EmbeddingResult, spectral_embed, eigendecompose, eigengap_estimate, row_normalize

__all__ = [
    "pairwise_distances",
    "distances_to_centers",
    "median_offdiagonal",
    "KernelType",
    "build_similarity",
    "gaussian_similarity",
    "epsilon_similarity",
    "knn_adjacency",
    "knn_similarity",
    "count_edges",
    "parameter_grid",
    "LaplacianType",
    "build_laplacian",
    "degree_vector",
    "EmbeddingResult",
    "spectral_embed",
    "eigendecompose",
    "eigengap_estimate",
    "row_normalize",
]
