import unittest
from unittest import mock

import numpy as np

from spectral_pcm.clustering import SpectralClusterer
from spectral_pcm.exceptions import DegenerateGraphError, InvalidInputError
from spectral_pcm.optimization import KernelParameterSearch, SweepConfig, sweep_kernel_parameters
from spectral_pcm.optimization.sweep import FAILED_SCORE


def three_blobs(seed=0, n=30):
  rng = np.random.default_rng(seed)
  centers = np.array([[0.0, 0.0], [10.0, 0.0], [5.0, 9.0]])
  return np.vstack([rng.normal(c, 0.5, size=(n, 2)) for c in centers])


def small_config(**kwargs):
  options = dict(
      n_clusters=3,
      kernels=("gaussian", "knn"),
      n_points=4,
      max_neighbors=6,
      verbose=False,
  )
  options.update(kwargs)
  return SweepConfig(**options)


class TestKernelParameterSearch(unittest.TestCase):
  def setUp(self):
    self.X = three_blobs()

  def test_best_candidate_separates_blobs(self):
    result = KernelParameterSearch(self.X, small_config()).search()
    self.assertIn(result.best_kernel, ("gaussian", "knn"))
    self.assertGreater(result.best_score, 0.8)
    self.assertEqual(len(result.history), 4 + 5)
    self.assertEqual(result.best_score, max(r["score"] for r in result.history))
    self.assertEqual([p for p, _ in result.scores_for("knn")], [2, 3, 4, 5, 6])
    self.assertFalse(result.timed_out)

  def test_default_kernels_are_all_scored(self):
    config = SweepConfig(n_clusters=3, verbose=False)
    self.assertEqual(config.kernels, ("gaussian", "epsilon", "knn"))
    result = KernelParameterSearch(self.X, config).search()

    epsilon_records = [r for r in result.history if r["kernel"] == "epsilon"]
    self.assertEqual(len(epsilon_records), config.n_points)
    scored = [r for r in epsilon_records if "error" not in r]
    self.assertTrue(scored)
    self.assertGreater(max(r["score"] for r in scored), 0.8)

    self.assertEqual({r["kernel"] for r in result.history}, {"gaussian", "epsilon", "knn"})
    best = max(result.history, key=lambda r: r["score"])
    self.assertEqual(result.best_score, best["score"])
    self.assertEqual((result.best_kernel, result.best_parameter), (best["kernel"], best["parameter"]))

  def test_results_are_reproducible(self):
    first = KernelParameterSearch(self.X, small_config()).search()
    second = KernelParameterSearch(self.X, small_config()).search()
    self.assertEqual(
        [r["score"] for r in first.history],
        [r["score"] for r in second.history])

  def test_failed_candidates_score_minus_one(self):
    original_fit = SpectralClusterer.fit

    def flaky_fit(clusterer, X, distance=None):
      if clusterer.config.kernel == "knn":
        raise DegenerateGraphError("存在度为0的孤立节点")
      return original_fit(clusterer, X, distance=distance)

    with mock.patch.object(SpectralClusterer, "fit", flaky_fit):
      result = KernelParameterSearch(self.X, small_config()).search()

    knn_records = [r for r in result.history if r["kernel"] == "knn"]
    self.assertEqual(len(knn_records), 5)
    for record in knn_records:
      self.assertEqual(record["score"], FAILED_SCORE)
      self.assertIn("knn", record["error"])
    self.assertEqual(result.best_kernel, "gaussian")

  def test_every_candidate_failing_does_not_abort(self):
    with mock.patch.object(SpectralClusterer, "fit", side_effect=RuntimeError("boom")):
      result = KernelParameterSearch(self.X, small_config(kernels=("epsilon",))).search()
    self.assertEqual(len(result.history), 4)
    self.assertEqual(result.best_score, FAILED_SCORE)

  def test_timeout(self):
    search = KernelParameterSearch(self.X, small_config())
    with mock.patch.object(KernelParameterSearch, "_check_timeout", return_value=True):
      result = search.search()
    self.assertTrue(result.timed_out)
    self.assertIsNone(result.best_kernel)
    self.assertEqual(result.history, [])

  def test_candidate_seeds_follow_index(self):
    search = KernelParameterSearch(self.X, small_config(random_state=100))
    result = search.search()
    self.assertEqual([r["seed"] for r in result.history], list(range(100, 109)))

  def test_functional_interface(self):
    result = sweep_kernel_parameters(
        self.X, 3, kernels=("gaussian",), n_points=3, verbose=False)
    self.assertEqual(result.best_kernel, "gaussian")
    self.assertEqual(len(result.history), 3)

  def test_invalid_configuration(self):
    with self.assertRaises(ValueError):
      SweepConfig(n_clusters=1)
    with self.assertRaises(ValueError):
      SweepConfig(kernels=("cosine",))
    with self.assertRaises(ValueError):
      SweepConfig(scale_range=(2.0, 0.1))
    with self.assertRaises(InvalidInputError):
      KernelParameterSearch(self.X[:2], small_config(n_clusters=2))
    with self.assertRaises(InvalidInputError):
      KernelParameterSearch(self.X, small_config(n_clusters=90))


if __name__ == "__main__":
  unittest.main()
