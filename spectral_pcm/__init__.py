"""
Spectral-PCM 项目源代码包

该项目包含以下主要模块：
- data: 特征矩阵与输入校验模块
- graph: 距离、相似度图、拉普拉斯矩阵与谱嵌入模块
- clustering: 划分求解器（k-means、FCM、PCM）与谱聚类模块
- optimization: 核参数扫描与聚类数量选择模块
- utils: 聚类质量评估指标模块
"""

__version__ = "1.0.0"
__author__ = "Spectral-PCM Team"
