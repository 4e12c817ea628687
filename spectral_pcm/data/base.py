"""
特征矩阵基础模块

该模块定义了聚类流程的输入数据结构 FeatureMatrix，
以及各求解器共用的输入校验函数。

FeatureMatrix 由外部预处理阶段（读表、异常值截断、去除零方差列、标准化）产生，
本模块只负责校验其不变量：
- 二维、非空
- 不包含 NaN/Inf
- 每一列的样本方差大于0
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union
import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from ..exceptions import InvalidInputError


def check_feature_array(X: Union[np.ndarray, "FeatureMatrix"], name: str = "X") -> np.ndarray:
    """
    将输入转换为二维浮点数组并校验有效性。

    Args:
        X: 特征矩阵（ndarray 或 FeatureMatrix）
        name: 参数名称，用于错误信息

    Returns:
        np.ndarray: 形状为 [n_samples, n_features] 的浮点数组

    Raises:
        InvalidInputError: 如果矩阵为空、不是二维或包含非有限值
    """
    if isinstance(X, FeatureMatrix):
        return X.values

    array = np.asarray(X, dtype=float)

    if array.ndim != 2:
        raise InvalidInputError(f"{name} 必须是二维矩阵，当前维度: {array.ndim}")
    if array.shape[0] == 0 or array.shape[1] == 0:
        raise InvalidInputError(f"{name} 不能为空，当前形状: {array.shape}")
    if not np.all(np.isfinite(array)):
        raise InvalidInputError(f"{name} 包含 NaN 或 Inf")

    return array


def check_n_clusters(n_clusters: int, n_samples: int) -> int:
    """
    校验聚类数量。

    Args:
        n_clusters: 聚类数量k
        n_samples: 样本数n

    Returns:
        int: 校验后的聚类数量

    Raises:
        InvalidInputError: 如果 k < 1 或 k >= n
    """
    if n_clusters < 1:
        raise InvalidInputError(f"n_clusters 必须大于0，当前值: {n_clusters}")
    if n_clusters >= n_samples:
        raise InvalidInputError(f"n_clusters ({n_clusters}) 必须小于样本数 ({n_samples})")
    return int(n_clusters)


@dataclass(frozen=True)
class FeatureMatrix:
    """
    已清洗的特征矩阵。

    行为观测（患者），列为标准化后的数值特征。对象创建后不可修改，
    底层数组被设置为只读。

    Attributes:
        values (np.ndarray): 特征数组，形状为 [n_samples, n_features]
        columns (List[str]): 特征列名
    """
    values: np.ndarray
    columns: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """
        初始化后校验不变量。

        Raises:
            InvalidInputError: 如果矩阵非法或存在零方差列
        """
        array = check_feature_array(self.values, name="FeatureMatrix")

        if array.shape[0] > 1:
            variances = np.var(array, axis=0, ddof=1)
            zero_var = np.where(variances <= 0)[0]
            if len(zero_var) > 0:
                raise InvalidInputError(f"存在零方差列，列索引: {zero_var.tolist()}")

        columns = list(self.columns) if self.columns else [f"feature_{i}" for i in range(array.shape[1])]
        if len(columns) != array.shape[1]:
            raise InvalidInputError(f"列名数量 ({len(columns)}) 与特征数 ({array.shape[1]}) 不一致")

        array = array.copy()
        array.setflags(write=False)
        object.__setattr__(self, "values", array)
        object.__setattr__(self, "columns", columns)

    @property
    def n_samples(self) -> int:
        return self.values.shape[0]

    @property
    def n_features(self) -> int:
        return self.values.shape[1]

    @property
    def shape(self):
        return self.values.shape

    def __len__(self) -> int:
        return self.n_samples

    @classmethod
    def from_array(cls, values: np.ndarray, columns: Optional[Sequence[str]] = None) -> "FeatureMatrix":
        """
        从数组创建特征矩阵。

        Args:
            values: 特征数组
            columns: 列名，可选

        Returns:
            FeatureMatrix: 特征矩阵对象
        """
        return cls(values=np.asarray(values, dtype=float), columns=list(columns) if columns else [])

    @classmethod
    def from_dataframe(cls, data: pd.DataFrame, standardize: bool = False) -> "FeatureMatrix":
        """
        从 DataFrame 创建特征矩阵，只保留数值列。

        Args:
            data: 输入数据
            standardize: 是否使用 StandardScaler 进行标准化

        Returns:
            FeatureMatrix: 特征矩阵对象

        Raises:
            InvalidInputError: 如果没有数值列或数据非法
        """
        numeric = data.select_dtypes(include=[np.number])
        if numeric.shape[1] == 0:
            raise InvalidInputError("DataFrame 中没有数值列")

        values = numeric.to_numpy(dtype=float)

        if standardize:
            check_feature_array(values)
            values = StandardScaler().fit_transform(values)

        return cls(values=values, columns=[str(c) for c in numeric.columns])
