"""
工具函数模块

该模块提供了项目常用的工具函数，包括：
- 聚类质量评估指标
"""

from .metrics import (
    silhouette,
    silhouette_values,
    dunn_index,
    calinski_harabasz,
    calinski_harabasz_from_features,
    assignment_entropy,
    partition_entropy,
    fuzzy_partition_coefficient,
    labels_from_membership,
    compute_quality_metrics,
    QualityEvaluator,
)

__all__ = [
    "silhouette",
    "silhouette_values",
    "dunn_index",
    "calinski_harabasz",
    "calinski_harabasz_from_features",
    "assignment_entropy",
    "partition_entropy",
    "fuzzy_partition_coefficient",
    "labels_from_membership",
    "compute_quality_metrics",
    "QualityEvaluator",
]
