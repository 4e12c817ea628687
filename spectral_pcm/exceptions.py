"""
异常定义模块

该模块定义了项目中使用的异常与警告类型：
- InvalidInputError: 输入数据或参数非法
- DegenerateGraphError: 相似度图退化（孤立节点或空图）
- EigenDecompositionError: 特征分解不收敛
- ParameterEvaluationError: 参数扫描中单个候选评估失败
- SolverNonConvergenceWarning: 迭代求解器达到最大迭代次数仍未收敛
"""


class SpectralPCMError(Exception):
    """
    项目异常基类。
    """


class InvalidInputError(SpectralPCMError, ValueError):
    """
    输入非法：空矩阵、包含NaN/Inf、k < 1 或 k >= n 等。
    """


class DegenerateGraphError(SpectralPCMError):
    """
    相似度图退化：存在度为0的节点，或整个图没有边。
    """


class EigenDecompositionError(SpectralPCMError):
    """
    特征值分解失败（数值不收敛）。
    """


class ParameterEvaluationError(SpectralPCMError):
    """
    参数扫描中某个候选参数评估失败。

    该异常只在扫描内部被捕获，对应候选得分记为-1，扫描继续进行。

    Attributes:
        kernel (str): 核函数名称
        parameter (float): 候选参数值
    """

    def __init__(self, kernel: str, parameter: float, cause: Exception) -> None:
        super().__init__(f"核函数 {kernel} 参数 {parameter:.4f} 评估失败: {cause}")
        self.kernel = kernel
        self.parameter = parameter
        self.cause = cause


class SolverNonConvergenceWarning(UserWarning):
    """
    迭代求解器（FCM/PCM）在最大迭代次数内未达到收敛阈值。

    非致命，结果对象的 converged 字段同时标记为 False。
    """
