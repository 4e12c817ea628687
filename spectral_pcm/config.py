"""
配置文件

该模块提供了项目的默认配置参数，
包括相似度扫描配置、求解器配置、聚类数量选择配置等。
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
import json


@dataclass
class SimilarityDefaults:
    """
    相似度图与核参数扫描默认配置。
    """
    kernels: Tuple[str, ...] = ("gaussian", "epsilon", "knn")
    n_points: int = 10
    scale_range: Tuple[float, float] = (0.1, 2.0)
    max_neighbors: int = 15
    laplacian: str = "normalized"


@dataclass
class FCMDefaults:
    """
    模糊 c 均值默认配置。
    """
    m: float = 2.0
    error: float = 1e-5
    max_iter: int = 300


@dataclass
class PCMDefaults:
    """
    可能性 c 均值默认配置。
    """
    m: float = 2.0
    epsilon: float = 1e-5
    eta_factor: float = 1.5
    max_iter: int = 300
    n_init: int = 10


@dataclass
class SelectionDefaults:
    """
    聚类数量选择默认配置。
    """
    k_min: int = 1
    k_max: int = 10
    method: str = "elbow"
    n_references: int = 10
    runs: int = 5
    rate_threshold: float = 0.2
    timeout: float = 300


@dataclass
class SpectralDefaults:
    """
    谱聚类默认配置。
    """
    assign_labels: str = "kmeans"
    drop_first: bool = True
    n_init: int = 10


@dataclass
class DataDefaults:
    """
    数据路径默认配置。
    """
    data_path: str = ""
    standardize: bool = False
    random_seed: int = 42


class Config:
    """
    项目配置单例类。

    该类整合所有配置，提供统一的配置访问接口。

    Example:
        >>> config = Config()
        >>> config.pcm.eta_factor
        1.5
        >>> config.selection.k_max
        10
    """

    _instance: Optional['Config'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.similarity = SimilarityDefaults()
        self.fcm = FCMDefaults()
        self.pcm = PCMDefaults()
        self.selection = SelectionDefaults()
        self.spectral = SpectralDefaults()
        self.data = DataDefaults()

        self._initialized = True

    def get_sweep_params(self) -> Dict[str, Any]:
        """
        获取核参数扫描参数字典。

        Returns:
            Dict[str, Any]: 扫描参数
        """
        return {
            'kernels': tuple(self.similarity.kernels),
            'n_points': self.similarity.n_points,
            'scale_range': tuple(self.similarity.scale_range),
            'max_neighbors': self.similarity.max_neighbors,
            'laplacian': self.similarity.laplacian,
            'timeout': self.selection.timeout,
            'random_state': self.data.random_seed,
        }

    def get_fcm_params(self) -> Dict[str, Any]:
        """
        获取 FCM 参数字典。

        Returns:
            Dict[str, Any]: FCM 参数
        """
        return {
            'm': self.fcm.m,
            'error': self.fcm.error,
            'max_iter': self.fcm.max_iter,
            'random_state': self.data.random_seed,
        }

    def get_pcm_params(self) -> Dict[str, Any]:
        """
        获取 PCM 参数字典。

        Returns:
            Dict[str, Any]: PCM 参数
        """
        return {
            'm': self.pcm.m,
            'epsilon': self.pcm.epsilon,
            'eta_factor': self.pcm.eta_factor,
            'max_iter': self.pcm.max_iter,
            'n_init': self.pcm.n_init,
            'random_state': self.data.random_seed,
        }

    def get_selection_params(self) -> Dict[str, Any]:
        """
        获取聚类数量选择参数字典（k范围与方法除外）。

        Returns:
            Dict[str, Any]: 选择参数
        """
        return {
            'n_references': self.selection.n_references,
            'runs': self.selection.runs,
            'rate_threshold': self.selection.rate_threshold,
            'timeout': self.selection.timeout,
            'random_state': self.data.random_seed,
        }

    def update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """
        从字典更新配置。

        Args:
            config_dict: 配置字典
        """
        for key, value in config_dict.items():
            if hasattr(self, key):
                if isinstance(value, dict):
                    current_obj = getattr(self, key)
                    for sub_key, sub_value in value.items():
                        if hasattr(current_obj, sub_key):
                            setattr(current_obj, sub_key, sub_value)
                else:
                    setattr(self, key, value)

    def to_dict(self) -> Dict[str, Any]:
        """
        转换为可序列化的字典。
        """
        return {
            'similarity': dict(self.similarity.__dict__),
            'fcm': dict(self.fcm.__dict__),
            'pcm': dict(self.pcm.__dict__),
            'selection': dict(self.selection.__dict__),
            'spectral': dict(self.spectral.__dict__),
            'data': dict(self.data.__dict__),
        }

    def save_config(self, path: str) -> None:
        """
        保存配置到文件。

        Args:
            path: 保存路径
        """
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

        print(f"配置已保存到: {path}")

    def load_config(self, path: str) -> None:
        """
        从文件加载配置。

        Args:
            path: 配置文件路径
        """
        with open(path, 'r', encoding='utf-8') as f:
            config_dict = json.load(f)

        self.update_from_dict(config_dict)
        print(f"配置已从 {path} 加载")


def get_default_config() -> Config:
    """
    获取默认配置单例。

    Returns:
        Config: 默认配置对象
    """
    return Config()


def reset_config() -> None:
    """
    重置配置为默认值。
    """
    Config._instance = None
