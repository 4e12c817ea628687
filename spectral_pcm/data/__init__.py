"""
数据模块

该模块提供了聚类流程的输入数据结构：
- FeatureMatrix: 已清洗、标准化的特征矩阵
- 输入校验函数
"""

from .base import FeatureMatrix, check_feature_array, check_n_clusters

__all__ = [
    "FeatureMatrix",
    "check_feature_array",
    "check_n_clusters",
]
