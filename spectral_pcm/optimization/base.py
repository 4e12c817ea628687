"""
基础搜索器抽象类

该模块定义了网格搜索的抽象基类，提供了通用的搜索接口。
核参数扫描与聚类数量选择都继承此类，逐个评估候选并记录历史。

每个候选使用独立的固定随机种子（random_state + 候选序号），
因此评估顺序不会影响结果；超时检查以单个候选为粒度，超时后提前终止。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import time
from tqdm import tqdm


@dataclass
class SearchConfig:
    """
    搜索器配置类，用于存储搜索器的通用参数。

    Attributes:
        timeout (float): 超时时间（秒）
        random_state (int): 随机种子基数
        verbose (bool): 是否打印详细信息
    """

    timeout: float = 300.0
    random_state: int = 42
    verbose: bool = True

    def __post_init__(self) -> None:
        """
        初始化后验证参数。
        """
        if self.timeout < 0:
            raise ValueError(f"timeout 必须大于等于0，当前值: {self.timeout}")


class BaseSearch(ABC):
    """
    基础搜索器抽象类。

    子类需要实现候选生成与单个候选的评估方法。

    Attributes:
        config (SearchConfig): 搜索器配置对象
        history (List[Dict]): 评估历史记录
        timed_out (bool): 是否因超时提前终止
    """

    description: str = "搜索"

    def __init__(self, config: Optional[SearchConfig] = None) -> None:
        """
        初始化基础搜索器。

        Args:
            config: 搜索器配置对象
        """
        self.config = config if config is not None else SearchConfig()

        self.history: List[Dict[str, Any]] = []
        self.timed_out = False
        self.start_time: float = 0.0
        self.end_time: float = 0.0

    @abstractmethod
    def _candidates(self) -> List[Any]:
        """
        生成候选列表（由子类实现）。

        Returns:
            List[Any]: 候选列表
        """
        pass

    @abstractmethod
    def _evaluate(self, candidate: Any, seed: int) -> Dict[str, Any]:
        """
        评估单个候选（由子类实现）。

        Args:
            candidate: 候选
            seed: 该候选专用的随机种子

        Returns:
            Dict[str, Any]: 评估记录，至少包含 'score'
        """
        pass

    def _seed_for(self, index: int) -> int:
        """
        计算第 index 个候选的随机种子。
        """
        return self.config.random_state + index

    def _check_timeout(self) -> bool:
        """
        检查是否超时。

        Returns:
            bool: 是否超时
        """
        return (time.time() - self.start_time) > self.config.timeout

    def run(self) -> List[Dict[str, Any]]:
        """
        依次评估所有候选。

        Returns:
            List[Dict[str, Any]]: 评估历史记录
        """
        self.start_time = time.time()
        self.history = []
        self.timed_out = False

        candidates = self._candidates()

        if self.config.verbose:
            progress_bar = tqdm(candidates, desc=self.description, ncols=80, unit="个")
        else:
            progress_bar = candidates

        for index, candidate in enumerate(progress_bar):

            if self._check_timeout():
                self.timed_out = True
                if self.config.verbose:
                    print(f"\n{self.description}超时 ({self.config.timeout}s)，提前终止")
                break

            record = self._evaluate(candidate, self._seed_for(index))
            record["time"] = time.time() - self.start_time
            self.history.append(record)

            if self.config.verbose:
                progress_bar.set_postfix({"得分": f"{record['score']:.4f}"})

        self.end_time = time.time()

        if self.config.verbose:
            print(f"{self.description}完成，共评估 {len(self.history)} 个候选，"
                  f"耗时: {self.end_time - self.start_time:.2f}秒")

        return self.history

    def get_history(self) -> List[Dict[str, Any]]:
        """
        获取评估历史记录。

        Returns:
            List[Dict[str, Any]]: 评估历史记录列表
        """
        return self.history

    def get_search_time(self) -> float:
        """
        获取搜索执行时间。

        Returns:
            float: 搜索时间（秒）
        """
        return self.end_time - self.start_time
