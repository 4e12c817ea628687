"""
优化模块

该模块提供了参数与聚类数量的搜索功能，包括：
- 搜索器抽象基类
- 核参数扫描
- 聚类数量选择（肘部法、Gap统计量、稳定性法、特征间隙法）
"""

from .base import BaseSearch, SearchConfig
from .sweep import KernelParameterSearch, SweepConfig, SweepResult, sweep_kernel_parameters
from .selection import (
    ElbowSelector,
    GapStatisticSelector,
    StabilitySelector,
    SelectionConfig,
    SelectionResult,
    elbow_decision,
    gap_decision,
    select_k,
    select_k_eigengap,
)

__all__ = [
    "BaseSearch",
    "SearchConfig",
    "KernelParameterSearch",
    "SweepConfig",
    "SweepResult",
    "sweep_kernel_parameters",
    "ElbowSelector",
    "GapStatisticSelector",
    "StabilitySelector",
    "SelectionConfig",
    "SelectionResult",
    "elbow_decision",
    "gap_decision",
    "select_k",
    "select_k_eigengap",
]
