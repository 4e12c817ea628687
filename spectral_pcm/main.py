#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Spectral-PCM 主程序入口

该模块提供了项目的统一入口点，对清洗后的特征矩阵（CSV）运行各个聚类任务：
1. 硬 k-means (--task=kmeans)
2. 模糊 c 均值 (--task=fcm)
3. 可能性 c 均值 (--task=pcm)
4. 谱聚类 (--task=spectral)
5. 谱聚类 + FCM (--task=spectral_fcm)
6. 核参数扫描 (--task=sweep)
7. 聚类数量选择 (--task=select_k)
8. 完整流程 (--task=all)

使用方法：
    python -m spectral_pcm.main --task=pcm --data_path=data/cleaned.csv --n_clusters=3
    python -m spectral_pcm.main --task=sweep --data_path=data/cleaned.csv --n_clusters=3
    python -m spectral_pcm.main --task=select_k --data_path=data/cleaned.csv --method=gap
    python -m spectral_pcm.main --task=all --data_path=data/cleaned.csv

所有任务共享同一个距离矩阵与同一组质量指标，结果以统一格式打印。
"""

import argparse
import os
import sys
import time
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .clustering import (
    FCMConfig,
    FuzzyCMeans,
    HardKMeans,
    KMeansConfig,
    PCMConfig,
    PossibilisticCMeans,
    SpectralClusterer,
    SpectralConfig,
)
from .config import Config, get_default_config
from .data import FeatureMatrix
from .graph import median_offdiagonal, pairwise_distances
from .optimization import SweepConfig, SweepResult, KernelParameterSearch, select_k
from .optimization.sweep import FAILED_SCORE
from .utils import QualityEvaluator

TASKS = ["kmeans", "fcm", "pcm", "spectral", "spectral_fcm", "sweep", "select_k", "all"]


def load_features(data_path: str, standardize: bool = False) -> FeatureMatrix:
    """
    加载清洗后的特征矩阵。

    CSV 中的全部列都作为特征，行作为样本。

    Args:
        data_path: CSV文件路径
        standardize: 是否做 z-score 标准化

    Returns:
        FeatureMatrix: 特征矩阵
    """
    data = pd.read_csv(data_path)
    features = FeatureMatrix.from_dataframe(data, standardize=standardize)

    print(f"数据加载完成:")
    print(f"  - 样本数: {features.n_samples}")
    print(f"  - 特征维度: {features.n_features}")
    print(f"  - 标准化: {'是' if standardize else '否'}")

    return features


def report_partition(
    name: str,
    distance: np.ndarray,
    labeling: np.ndarray,
    features: Optional[np.ndarray] = None
) -> Dict[str, float]:
    """
    计算并打印一个划分的质量指标。

    Args:
        name: 方法名称
        distance: 原始特征空间距离矩阵
        labeling: 硬标签或隶属度矩阵
        features: 特征矩阵，可选

    Returns:
        Dict[str, float]: 指标字典
    """
    evaluator = QualityEvaluator()
    results = evaluator.evaluate(distance, labeling, features=features)
    evaluator.print_results(results, title=name)
    return results


def run_solver_task(
    task: str,
    features: FeatureMatrix,
    distance: np.ndarray,
    n_clusters: int,
    config: Config,
) -> Dict[str, float]:
    """
    在原始特征上运行 k-means、FCM 或 PCM。

    Args:
        task: 任务类型 ('kmeans', 'fcm', 'pcm')
        features: 特征矩阵
        distance: 距离矩阵
        n_clusters: 聚类数量
        config: 全局配置

    Returns:
        Dict[str, float]: 指标字典
    """
    print("\n" + "=" * 60)
    print(f"{task.upper()} 聚类任务")
    print("=" * 60)

    seed = config.data.random_seed

    if task == "kmeans":
        solver = HardKMeans(KMeansConfig(n_clusters=n_clusters, random_state=seed, verbose=True))
    elif task == "fcm":
        params = config.get_fcm_params()
        solver = FuzzyCMeans(FCMConfig(n_clusters=n_clusters, verbose=True, **params))
    else:
        params = config.get_pcm_params()
        solver = PossibilisticCMeans(PCMConfig(n_clusters=n_clusters, verbose=True, **params))

    result = solver.fit(features)

    sizes = np.bincount(result.labels, minlength=n_clusters)
    print(f"  - 簇大小: {sizes.tolist()}")
    print(f"  - 迭代次数: {result.iterations}, 收敛: {result.converged}")
    if result.eta is not None:
        print(f"  - 簇带宽 eta: {np.round(result.eta, 4).tolist()}")

    return report_partition(task, distance, result.membership, features=features.values)


def run_sweep_task(
    features: FeatureMatrix,
    distance: np.ndarray,
    n_clusters: int,
    config: Config,
    timeout: Optional[float] = None,
    data_path: str = "",
) -> SweepResult:
    """
    运行核参数扫描任务。

    Args:
        features: 特征矩阵
        distance: 距离矩阵
        n_clusters: 聚类数量
        config: 全局配置
        timeout: 超时时间（秒），None 时使用配置值
        data_path: 数据文件路径，仅用于打印

    Returns:
        SweepResult: 扫描结果
    """
    import psutil

    print("\n" + "=" * 60)
    print("核参数扫描任务")
    print("=" * 60)

    mem_info = psutil.virtual_memory()
    print(f"CPU cores: {psutil.cpu_count(logical=True)}")
    print(f"Total Memory: {mem_info.total / (1024 ** 3):.2f} GB")
    print(f"Processing Dataset: {os.path.basename(data_path)}")
    print("-" * 50)

    params = config.get_sweep_params()
    if timeout is not None:
        params["timeout"] = timeout

    sweep_config = SweepConfig(n_clusters=n_clusters, verbose=True, **params)

    time_start = time.time()
    result = KernelParameterSearch(features, sweep_config, distance=distance).search()
    duration = time.time() - time_start

    print("\n--- 扫描结果 ---")
    for kernel in sweep_config.kernels:
        scores = result.scores_for(kernel)
        if scores:
            best_param, best_score = max(scores, key=lambda item: item[1])
            print(f"  {kernel:<10} 最优参数: {best_param:.4f}, 轮廓系数: {best_score:.4f}")

    failed = sum(1 for r in result.history if "error" in r)
    print(f"失败候选数: {failed}")
    if result.timed_out:
        print("注意: 扫描因超时提前终止")
    print(f"扫描时间: {duration:.2f} 秒")

    return result


def run_select_k_task(
    features: FeatureMatrix,
    distance: np.ndarray,
    method: str,
    k_range: Tuple[int, int],
    config: Config,
    parameter: Optional[float] = None,
) -> Optional[int]:
    """
    运行聚类数量选择任务。

    Args:
        features: 特征矩阵
        distance: 距离矩阵
        method: 选择方法
        k_range: (k_min, k_max)，闭区间
        config: 全局配置
        parameter: 特征间隙法的高斯核 sigma，None 时使用距离中位数

    Returns:
        Optional[int]: 选出的聚类数量
    """
    print("\n" + "=" * 60)
    print(f"聚类数量选择任务 ({method})")
    print("=" * 60)

    k_min, k_max = k_range
    if method == "stability":
        k_min = max(2, k_min)

    options = config.get_selection_params()
    if method == "eigengap":
        options["parameter"] = parameter if parameter is not None else median_offdiagonal(distance)

    result = select_k(features, method, range(k_min, k_max + 1), distance=distance, **options)

    print(f"  - 评估的k: {result.k_values}")
    for key, values in result.diagnostics.items():
        if key in ("score", "seed"):
            continue
        print(f"  - {key}: {np.round(np.asarray(values, dtype=float), 4).tolist()}")
    print(f"  - 最优k: {result.optimal_k}")

    return result.optimal_k


def run_spectral_task(
    features: FeatureMatrix,
    distance: np.ndarray,
    n_clusters: int,
    config: Config,
    assign_labels: Optional[str] = None,
    kernel: str = "gaussian",
    parameter: Optional[float] = None,
    self_similarity: Optional[float] = None,
    drop_first: Optional[bool] = None,
) -> Dict[str, float]:
    """
    运行谱聚类（或谱聚类 + FCM/PCM）任务。

    Args:
        features: 特征矩阵
        distance: 距离矩阵
        n_clusters: 聚类数量
        config: 全局配置
        assign_labels: 嵌入上的划分求解器，None 时使用配置中的值
        kernel: 核函数
        parameter: 核参数，None 时对高斯核使用距离中位数
        self_similarity: 强制的自相似度，复现扫描结果时为1
        drop_first: 是否跳过平凡特征向量，None 时使用配置中的值

    Returns:
        Dict[str, float]: 指标字典
    """
    if assign_labels is None:
        assign_labels = config.spectral.assign_labels
    if drop_first is None:
        drop_first = config.spectral.drop_first

    title = "谱聚类" if assign_labels == "kmeans" else f"谱聚类 + {assign_labels.upper()}"
    print("\n" + "=" * 60)
    print(f"{title}任务")
    print("=" * 60)

    if parameter is None:
        if kernel != "gaussian":
            raise ValueError(f"核函数 {kernel} 需要显式指定 --parameter")
        parameter = median_offdiagonal(distance)
        print(f"使用距离中位数作为 sigma: {parameter:.4f}")

    spectral_config = SpectralConfig(
        n_clusters=n_clusters,
        kernel=kernel,
        parameter=parameter,
        laplacian=config.similarity.laplacian,
        assign_labels=assign_labels,
        drop_first=drop_first,
        self_similarity=self_similarity,
        n_init=config.spectral.n_init,
        m=config.fcm.m,
        error=config.fcm.error,
        epsilon=config.pcm.epsilon,
        eta_factor=config.pcm.eta_factor,
        random_state=config.data.random_seed,
        verbose=True,
    )

    result = SpectralClusterer(spectral_config).fit(features, distance=distance)

    print(f"  - 最小的 {n_clusters + 1} 个特征值: "
          f"{np.round(result.eigenvalues[:n_clusters + 1], 6).tolist()}")

    return report_partition(title, distance, result.membership, features=features.values)


def run_all_tasks(
    features: FeatureMatrix,
    distance: np.ndarray,
    n_clusters: int,
    k_range: Tuple[int, int],
    config: Config,
    timeout: Optional[float] = None,
    data_path: str = "",
) -> Dict[str, Dict[str, float]]:
    """
    运行完整流程：聚类数量选择 → 核参数扫描 → 各求解器对比。

    Args:
        features: 特征矩阵
        distance: 距离矩阵
        n_clusters: 聚类数量，聚类数量选择无结果时使用
        k_range: 聚类数量选择的范围
        config: 全局配置
        timeout: 扫描超时时间
        data_path: 数据文件路径

    Returns:
        Dict[str, Dict[str, float]]: 各方法的指标字典
    """
    print("\n" + "=" * 60)
    print("完整流程任务")
    print("=" * 60)

    selected = run_select_k_task(features, distance, config.selection.method, k_range, config)
    if selected is not None and selected >= 2:
        n_clusters = selected
    print(f"\n使用聚类数量: {n_clusters}")

    sweep = run_sweep_task(features, distance, n_clusters, config, timeout=timeout, data_path=data_path)

    summary = {}
    for task in ["kmeans", "fcm", "pcm"]:
        summary[task] = run_solver_task(task, features, distance, n_clusters, config)

    kernel, parameter, self_similarity, drop_first = "gaussian", None, None, None
    if sweep.best_kernel is not None and sweep.best_score > FAILED_SCORE:
        # 复现扫描的评分方式：保留自环，取最小的 k 个特征向量
        kernel, parameter = sweep.best_kernel, sweep.best_parameter
        self_similarity, drop_first = 1.0, False

    summary["spectral"] = run_spectral_task(
        features, distance, n_clusters, config, "kmeans", kernel, parameter,
        self_similarity, drop_first
    )
    summary["spectral_fcm"] = run_spectral_task(
        features, distance, n_clusters, config, "fcm", kernel, parameter,
        self_similarity, drop_first
    )

    print("\n=== 方法对比摘要 ===")
    print(f"{'方法':<14}{'Silhouette':>12}{'Dunn':>10}{'CH':>12}")
    for name, scores in summary.items():
        print(f"{name:<14}{scores['silhouette']:>12.4f}{scores['dunn']:>10.4f}"
              f"{scores['calinski_harabasz']:>12.2f}")
    print("-" * 48)

    print("\n完整流程完成！")

    return summary


def parse_arguments() -> argparse.Namespace:
    """
    解析命令行参数。

    Returns:
        argparse.Namespace: 解析后的参数
    """
    parser = argparse.ArgumentParser(
        description="Spectral-PCM: 谱聚类与可能性 c 均值分析工具",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  # 运行 PCM
  python -m spectral_pcm.main --task=pcm --data_path=data/cleaned.csv --n_clusters=3

  # 运行核参数扫描
  python -m spectral_pcm.main --task=sweep --data_path=data/cleaned.csv --n_clusters=3

  # 用 Gap 统计量选择聚类数量
  python -m spectral_pcm.main --task=select_k --data_path=data/cleaned.csv --method=gap

  # 运行完整流程
  python -m spectral_pcm.main --task=all --data_path=data/cleaned.csv
        """,
    )

    parser.add_argument(
        "--task",
        type=str,
        default="all",
        choices=TASKS,
        help="任务类型 (默认: all)",
    )

    parser.add_argument(
        "--data_path",
        type=str,
        required=True,
        help="清洗后的特征矩阵 CSV 文件路径",
    )

    parser.add_argument(
        "--n_clusters",
        type=int,
        default=3,
        help="聚类数量",
    )

    parser.add_argument(
        "--k_min",
        type=int,
        default=None,
        help="聚类数量选择的最小k",
    )

    parser.add_argument(
        "--k_max",
        type=int,
        default=None,
        help="聚类数量选择的最大k",
    )

    parser.add_argument(
        "--method",
        type=str,
        default=None,
        choices=["elbow", "gap", "stability", "eigengap"],
        help="聚类数量选择方法",
    )

    parser.add_argument(
        "--kernel",
        type=str,
        default="gaussian",
        choices=["gaussian", "epsilon", "knn"],
        help="谱聚类使用的核函数",
    )

    parser.add_argument(
        "--parameter",
        type=float,
        default=None,
        help="核参数（sigma、epsilon 或近邻数）",
    )

    parser.add_argument(
        "--standardize",
        action="store_true",
        help="对特征做 z-score 标准化",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="随机种子",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="扫描与选择的超时时间（秒）",
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON 配置文件路径",
    )

    return parser.parse_args()


def apply_arguments(args: argparse.Namespace, config: Config) -> None:
    """
    用命令行参数覆盖配置。
    """
    if args.config:
        config.load_config(args.config)
    if args.seed is not None:
        config.data.random_seed = args.seed
    if args.k_min is not None:
        config.selection.k_min = args.k_min
    if args.k_max is not None:
        config.selection.k_max = args.k_max
    if args.method is not None:
        config.selection.method = args.method
    if args.timeout is not None:
        config.selection.timeout = args.timeout
    if args.standardize:
        config.data.standardize = True
    config.data.data_path = args.data_path


def main() -> None:
    """
    主函数入口。

    解析命令行参数并调用相应的任务处理函数。
    """
    args = parse_arguments()

    print("\n" + "=" * 60)
    print("Spectral-PCM - 谱聚类与可能性 c 均值分析工具")
    print("=" * 60)

    config = get_default_config()
    apply_arguments(args, config)

    print(f"随机种子: {config.data.random_seed}")

    try:
        features = load_features(config.data.data_path, config.data.standardize)
        distance = pairwise_distances(features)
        k_range = (config.selection.k_min, config.selection.k_max)

        if args.task in ("kmeans", "fcm", "pcm"):
            run_solver_task(args.task, features, distance, args.n_clusters, config)

        elif args.task == "spectral":
            run_spectral_task(
                features, distance, args.n_clusters, config, None, args.kernel, args.parameter
            )

        elif args.task == "spectral_fcm":
            run_spectral_task(
                features, distance, args.n_clusters, config, "fcm", args.kernel, args.parameter
            )

        elif args.task == "sweep":
            run_sweep_task(
                features, distance, args.n_clusters, config,
                timeout=args.timeout, data_path=config.data.data_path,
            )

        elif args.task == "select_k":
            run_select_k_task(
                features, distance, config.selection.method, k_range, config, parameter=args.parameter
            )

        elif args.task == "all":
            run_all_tasks(
                features, distance, args.n_clusters, k_range, config,
                timeout=args.timeout, data_path=config.data.data_path,
            )

    except KeyboardInterrupt:
        print("\n用户中断执行")
        sys.exit(0)
    except Exception as e:
        print(f"\n执行出错: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)

    print("\n" + "=" * 60)
    print("程序执行完成")
    print("=" * 60)


if __name__ == "__main__":
    main()
