"""
谱嵌入模块

该模块对拉普拉斯矩阵做特征分解，取最小特征值对应的特征向量
构成谱嵌入，并按行做L2归一化。

嵌入步骤：
1. 对称拉普拉斯使用对称特征求解器，随机游走拉普拉斯使用一般特征求解器
2. 特征值升序排列
3. 默认跳过最小特征值（连通图上约为0，对应平凡特征向量），取第2..k+1个特征向量
4. 每行归一化为单位长度，范数过小的行使用极小值作为分母
"""

from dataclasses import dataclass
from typing import Optional
import numpy as np
import scipy.linalg

from ..exceptions import EigenDecompositionError, InvalidInputError

NORM_MIN_VALUE = 1e-10


@dataclass
class EmbeddingResult:
    """
    谱嵌入结果。

    Attributes:
        embedding (np.ndarray): 行归一化后的嵌入，形状为 [n_samples, k]
        eigenvalues (np.ndarray): 全部特征值（升序）
        eigenvectors (np.ndarray): 被选中的原始特征向量，形状为 [n_samples, k]
    """
    embedding: np.ndarray
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray


def row_normalize(matrix: np.ndarray, floor: float = NORM_MIN_VALUE) -> np.ndarray:
    """
    按行进行L2归一化。

    Args:
        matrix: 输入矩阵
        floor: 范数下限，避免除零

    Returns:
        np.ndarray: 行归一化后的矩阵
    """
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    return matrix / np.maximum(norms, floor)


def eigendecompose(laplacian: np.ndarray, symmetric: Optional[bool] = None):
    """
    对拉普拉斯矩阵进行特征分解，返回升序排列的特征值和特征向量。

    Args:
        laplacian: 拉普拉斯矩阵
        symmetric: 是否按对称矩阵求解，None 时自动判断

    Returns:
        Tuple[np.ndarray, np.ndarray]: (特征值, 特征向量按列排列)

    Raises:
        EigenDecompositionError: 如果特征求解不收敛或结果包含非有限值
    """
    matrix = np.asarray(laplacian, dtype=float)

    if symmetric is None:
        symmetric = bool(np.allclose(matrix, matrix.T, atol=1e-10))

    try:
        if symmetric:
            eigenvalues, eigenvectors = scipy.linalg.eigh(matrix)
        else:
            eigenvalues, eigenvectors = scipy.linalg.eig(matrix)
            eigenvalues = np.real(eigenvalues)
            eigenvectors = np.real(eigenvectors)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise EigenDecompositionError(f"特征分解失败: {e}") from e

    if not (np.all(np.isfinite(eigenvalues)) and np.all(np.isfinite(eigenvectors))):
        raise EigenDecompositionError("特征分解结果包含 NaN 或 Inf")

    order = np.argsort(eigenvalues, kind="stable")
    return eigenvalues[order], eigenvectors[:, order]


def spectral_embed(
    laplacian: np.ndarray,
    n_components: int,
    drop_first: bool = True,
    symmetric: Optional[bool] = None
) -> EmbeddingResult:
    """
    计算谱嵌入。

    Args:
        laplacian: 拉普拉斯矩阵，形状为 [n_samples, n_samples]
        n_components: 嵌入维度k
        drop_first: 是否跳过最小特征值对应的平凡特征向量
        symmetric: 是否使用对称特征求解器，None 时自动判断

    Returns:
        EmbeddingResult: 嵌入、特征值与选中的特征向量

    Raises:
        InvalidInputError: 如果嵌入维度非法
        EigenDecompositionError: 如果特征分解失败

    Example:
        >>> L = build_laplacian(S, "normalized")
        >>> result = spectral_embed(L, n_components=3)
        >>> result.embedding.shape  # (n_samples, 3)
    """
    matrix = np.asarray(laplacian, dtype=float)

    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise InvalidInputError(f"laplacian 必须是方阵，当前形状: {matrix.shape}")

    n = matrix.shape[0]
    offset = 1 if drop_first else 0

    if n_components < 1:
        raise InvalidInputError(f"n_components 必须大于0，当前值: {n_components}")
    if n_components + offset > n:
        raise InvalidInputError(f"嵌入维度 ({n_components}) 过大，样本数仅为 {n}")

    eigenvalues, eigenvectors = eigendecompose(matrix, symmetric=symmetric)

    selected = eigenvectors[:, offset:offset + n_components]

    return EmbeddingResult(
        embedding=row_normalize(selected),
        eigenvalues=eigenvalues,
        eigenvectors=selected,
    )


def eigengap_estimate(eigenvalues: np.ndarray, min_k: int = 2, max_k: int = 10) -> int:
    """
    根据特征间隙启发式估计聚类数量。

    在升序特征值中寻找 lambda_{k+1} - lambda_k 最大的 k。

    Args:
        eigenvalues: 升序排列的特征值
        min_k: 候选最小聚类数
        max_k: 候选最大聚类数

    Returns:
        int: 估计的聚类数量
    """
    values = np.sort(np.asarray(eigenvalues, dtype=float))
    max_k = min(max_k, len(values) - 1)

    if max_k < min_k:
        raise InvalidInputError(f"特征值数量不足以在[{min_k}, {max_k}]范围内估计聚类数")

    gaps = np.diff(values)
    candidate_ks = np.arange(min_k, max_k + 1)
    candidate_gaps = gaps[candidate_ks - 1]

    return int(candidate_ks[np.argmax(candidate_gaps)])
