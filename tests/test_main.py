import os
import tempfile
import unittest
from unittest import mock

import numpy as np
import pandas as pd

from spectral_pcm import main as cli
from spectral_pcm.clustering import SpectralClusterer
from spectral_pcm.config import get_default_config, reset_config
from spectral_pcm.graph import median_offdiagonal, pairwise_distances


def write_blobs(directory, seed=0, n=30):
  rng = np.random.default_rng(seed)
  centers = np.array([[0.0, 0.0], [10.0, 0.0], [5.0, 9.0]])
  values = np.vstack([rng.normal(c, 0.5, size=(n, 2)) for c in centers])
  path = os.path.join(directory, "cleaned.csv")
  pd.DataFrame(values, columns=["glucose", "bmi"]).to_csv(path, index=False)
  return path


class TestTasks(unittest.TestCase):
  def setUp(self):
    reset_config()
    self.directory = tempfile.TemporaryDirectory()
    self.path = write_blobs(self.directory.name)
    self.features = cli.load_features(self.path)
    self.distance = pairwise_distances(self.features)

  def tearDown(self):
    self.directory.cleanup()
    reset_config()

  def test_solver_tasks(self):
    config = get_default_config()
    for task in ["kmeans", "fcm", "pcm"]:
      scores = cli.run_solver_task(task, self.features, self.distance, 3, config)
      self.assertGreater(scores["silhouette"], 0.8)
      self.assertIn("fpc", scores)

  def test_spectral_task_defaults_to_median_sigma(self):
    config = get_default_config()
    scores = cli.run_spectral_task(self.features, self.distance, 3, config, "fcm")
    self.assertTrue(-1.0 <= scores["silhouette"] <= 1.0)
    self.assertIn("fpc", scores)
    with self.assertRaises(ValueError):
      cli.run_spectral_task(self.features, self.distance, 3, config, "kmeans", kernel="knn")

  def test_spectral_task_reads_configured_solver(self):
    config = get_default_config()
    config.spectral.assign_labels = "fcm"
    with mock.patch.object(cli, "SpectralClusterer", wraps=SpectralClusterer) as clusterer:
      cli.run_spectral_task(self.features, self.distance, 3, config)
      cli.run_spectral_task(self.features, self.distance, 3, config, "kmeans", drop_first=False)
    first, second = [call.args[0] for call in clusterer.call_args_list]
    self.assertEqual(first.assign_labels, "fcm")
    self.assertTrue(first.drop_first)
    self.assertEqual(first.parameter, median_offdiagonal(self.distance))
    self.assertEqual(second.assign_labels, "kmeans")
    self.assertFalse(second.drop_first)

  def test_select_k_task(self):
    config = get_default_config()
    self.assertEqual(cli.run_select_k_task(self.features, self.distance, "elbow", (1, 10), config), 3)
    self.assertEqual(cli.run_select_k_task(self.features, self.distance, "stability", (1, 5), config), 3)


class TestCommandLine(unittest.TestCase):
  def setUp(self):
    reset_config()
    self.directory = tempfile.TemporaryDirectory()
    self.path = write_blobs(self.directory.name)

  def tearDown(self):
    self.directory.cleanup()
    reset_config()

  def run_main(self, *arguments):
    argv = ["main.py", "--data_path", self.path] + list(arguments)
    with mock.patch("sys.argv", argv):
      cli.main()

  def test_pcm_task(self):
    self.run_main("--task", "pcm", "--n_clusters", "3", "--seed", "5")
    self.assertEqual(get_default_config().data.random_seed, 5)

  def test_select_k_task_overrides_config(self):
    self.run_main("--task", "select_k", "--method", "gap", "--k_min", "1", "--k_max", "5")
    config = get_default_config()
    self.assertEqual(config.selection.method, "gap")
    self.assertEqual(config.selection.k_max, 5)

  def test_all_tasks(self):
    with mock.patch.object(cli, "run_spectral_task", wraps=cli.run_spectral_task) as spectral:
      self.run_main("--task", "all", "--k_max", "6", "--timeout", "120")
    self.assertEqual(spectral.call_count, 2)
    for call in spectral.call_args_list:
      # 复现扫描最优候选：自相似度为1，取最小的 k 个特征向量
      self.assertEqual(call.args[7], 1.0)
      self.assertFalse(call.args[8])

  def test_missing_file_exits_with_error(self):
    argv = ["main.py", "--data_path", os.path.join(self.directory.name, "missing.csv")]
    with mock.patch("sys.argv", argv):
      with self.assertRaises(SystemExit) as context:
        cli.main()
    self.assertEqual(context.exception.code, 1)


if __name__ == "__main__":
  unittest.main()
