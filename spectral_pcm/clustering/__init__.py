"""
聚类模块

该模块提供了可插拔的划分求解器与谱聚类流程，包括：
- 硬 k-means
- 模糊 c 均值（FCM）
- 可能性 c 均值（PCM）
- 谱聚类（嵌入上可接 k-means、FCM 或 PCM）
"""

from .base import BaseClusterer, ClusteringResult, SolverConfig
from .kmeans import HardKMeans, KMeansConfig, within_cluster_ss
from .fcm import FuzzyCMeans, FCMConfig, fuzzy_membership
from .pcm import (
    PossibilisticCMeans,
    PCMConfig,
    run_pcm,
    compute_eta,
    typicality,
)
from .spectral import SpectralClusterer, SpectralConfig, SpectralResult

__all__ = [
    "BaseClusterer",
    "ClusteringResult",
    "SolverConfig",
    "HardKMeans",
    "KMeansConfig",
    "within_cluster_ss",
    "FuzzyCMeans",
    "FCMConfig",
    "fuzzy_membership",
    "PossibilisticCMeans",
    "PCMConfig",
    "run_pcm",
    "compute_eta",
    "typicality",
    "SpectralClusterer",
    "SpectralConfig",
    "SpectralResult",
]
