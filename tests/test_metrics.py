import unittest

import numpy as np

from spectral_pcm.clustering import HardKMeans, KMeansConfig
from spectral_pcm.exceptions import InvalidInputError
from spectral_pcm.graph import pairwise_distances
from spectral_pcm.utils import (
    QualityEvaluator,
    assignment_entropy,
    calinski_harabasz,
    calinski_harabasz_from_features,
    compute_quality_metrics,
    dunn_index,
    fuzzy_partition_coefficient,
    labels_from_membership,
    partition_entropy,
    silhouette,
    silhouette_values,
)

LINE = np.array([[0.0], [1.0], [10.0], [11.0]])
LINE_LABELS = np.array([0, 0, 1, 1])


def three_blobs(seed=0, n=30):
  rng = np.random.default_rng(seed)
  centers = np.array([[0.0, 0.0], [10.0, 0.0], [5.0, 9.0]])
  return np.vstack([rng.normal(c, 0.5, size=(n, 2)) for c in centers])


class TestHardMetrics(unittest.TestCase):
  def test_silhouette_on_line(self):
    D = pairwise_distances(LINE)
    values = silhouette_values(D, LINE_LABELS)
    np.testing.assert_allclose(values, [9.5 / 10.5, 8.5 / 9.5, 8.5 / 9.5, 9.5 / 10.5])
    self.assertAlmostEqual(silhouette(D, LINE_LABELS), np.mean(values))

  def test_dunn_on_line(self):
    D = pairwise_distances(LINE)
    self.assertAlmostEqual(dunn_index(D, LINE_LABELS), 9.0)

  def test_dunn_with_zero_diameter(self):
    D = pairwise_distances(np.array([[0.0], [0.0], [5.0], [5.0]]))
    self.assertEqual(dunn_index(D, LINE_LABELS), float("inf"))

  def test_calinski_harabasz_forms_agree(self):
    X = three_blobs()
    labels = HardKMeans(KMeansConfig(n_clusters=3, random_state=0)).fit_predict(X)
    D = pairwise_distances(X)
    manual = calinski_harabasz(D, labels)
    closed = calinski_harabasz_from_features(X, labels)
    self.assertGreater(manual, 100.0)
    np.testing.assert_allclose(manual, closed, rtol=1e-8)

  def test_calinski_harabasz_zero_within(self):
    D = pairwise_distances(np.array([[0.0], [0.0], [5.0], [5.0]]))
    self.assertEqual(calinski_harabasz(D, LINE_LABELS), 1.0)

  def test_single_cluster_is_rejected(self):
    D = pairwise_distances(LINE)
    for metric in [silhouette, dunn_index, calinski_harabasz]:
      with self.assertRaises(InvalidInputError):
        metric(D, np.zeros(4, dtype=int))

  def test_label_length_mismatch(self):
    D = pairwise_distances(LINE)
    with self.assertRaises(InvalidInputError):
      silhouette(D, np.array([0, 1, 1]))


class TestFuzzyMetrics(unittest.TestCase):
  def test_fpc_bounds(self):
    rng = np.random.default_rng(0)
    for k in [2, 3, 5]:
      u = rng.dirichlet(np.ones(k), size=50)
      fpc = fuzzy_partition_coefficient(u)
      self.assertGreaterEqual(fpc, 1.0 / k)
      self.assertLessEqual(fpc, 1.0)

  def test_fpc_extremes(self):
    crisp = np.eye(3)[[0, 1, 2, 1, 0]]
    self.assertAlmostEqual(fuzzy_partition_coefficient(crisp), 1.0)
    uniform = np.full((5, 4), 0.25)
    self.assertAlmostEqual(fuzzy_partition_coefficient(uniform), 0.25)
    almost_crisp = crisp.copy()
    almost_crisp[0] = [0.9, 0.05, 0.05]
    self.assertLess(fuzzy_partition_coefficient(almost_crisp), 1.0)

  def test_entropy(self):
    crisp = np.eye(2)[[0, 1, 1, 0]]
    self.assertAlmostEqual(partition_entropy(crisp), 0.0, places=8)
    uniform = np.full((4, 2), 0.5)
    self.assertAlmostEqual(assignment_entropy(uniform), np.log(2.0), places=6)
    self.assertAlmostEqual(partition_entropy(uniform), assignment_entropy(uniform))

  def test_labels_from_membership(self):
    u = np.array([[0.2, 0.8], [0.7, 0.1], [0.05, 0.06]])
    np.testing.assert_array_equal(labels_from_membership(u), [1, 0, 1])


class TestQualityReport(unittest.TestCase):
  def setUp(self):
    self.D = pairwise_distances(LINE)
    self.membership = np.array([
        [0.9, 0.1],
        [0.8, 0.2],
        [0.1, 0.9],
        [0.2, 0.8],
    ])

  def test_hard_labels(self):
    scores = compute_quality_metrics(self.D, LINE_LABELS)
    self.assertEqual(set(scores), {"silhouette", "dunn", "calinski_harabasz"})

  def test_membership_adds_fuzzy_scores(self):
    scores = compute_quality_metrics(self.D, self.membership, features=LINE)
    self.assertEqual(set(scores), {
        "silhouette", "dunn", "calinski_harabasz", "calinski_harabasz_closed_form",
        "partition_entropy", "assignment_entropy", "fpc",
    })
    self.assertAlmostEqual(scores["silhouette"], silhouette(self.D, LINE_LABELS))
    self.assertAlmostEqual(scores["calinski_harabasz"], scores["calinski_harabasz_closed_form"])

  def test_possibilistic_membership_is_accepted(self):
    typicalities = self.membership * 0.5
    scores = compute_quality_metrics(self.D, typicalities)
    self.assertAlmostEqual(scores["dunn"], 9.0)

  def test_invalid_labeling_shape(self):
    with self.assertRaises(InvalidInputError):
      compute_quality_metrics(self.D, np.zeros((4, 2, 1)))

  def test_evaluator_selects_metrics(self):
    evaluator = QualityEvaluator(hard_metrics=["dunn"], fuzzy_metrics=["fpc"])
    scores = evaluator.evaluate(self.D, self.membership)
    self.assertEqual(set(scores), {"dunn", "fpc"})
    evaluator.print_results(scores, title="pcm")


if __name__ == "__main__":
  unittest.main()
