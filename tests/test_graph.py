import unittest
from unittest import mock

import numpy as np

from spectral_pcm.exceptions import (
    DegenerateGraphError,
    EigenDecompositionError,
    InvalidInputError,
)
from spectral_pcm.graph import (
    build_laplacian,
    build_similarity,
    count_edges,
    degree_vector,
    eigendecompose,
    eigengap_estimate,
    epsilon_similarity,
    gaussian_similarity,
    knn_adjacency,
    knn_similarity,
    median_offdiagonal,
    pairwise_distances,
    parameter_grid,
    spectral_embed,
)


def random_features(n=20, d=3, seed=0):
  return np.random.default_rng(seed).normal(size=(n, d))


class TestDistance(unittest.TestCase):
  def test_pairwise_distances_properties(self):
    D = pairwise_distances(random_features())
    self.assertEqual(D.shape, (20, 20))
    np.testing.assert_allclose(D, D.T)
    np.testing.assert_allclose(np.diag(D), 0.0)
    self.assertTrue(np.all(D >= 0))

  def test_known_distances_and_median(self):
    X = np.array([[0.0, 0.0], [3.0, 4.0], [6.0, 8.0]])
    D = pairwise_distances(X)
    self.assertAlmostEqual(D[0, 1], 5.0)
    self.assertAlmostEqual(D[0, 2], 10.0)
    self.assertAlmostEqual(median_offdiagonal(D), 5.0)

  def test_single_sample(self):
    D = pairwise_distances(np.array([[1.0, 2.0]]))
    np.testing.assert_array_equal(D, np.zeros((1, 1)))

  def test_invalid_features(self):
    with self.assertRaises(InvalidInputError):
      pairwise_distances(np.array([[1.0, np.nan], [0.0, 1.0]]))
    with self.assertRaises(InvalidInputError):
      pairwise_distances(np.zeros((0, 2)))
    with self.assertRaises(InvalidInputError):
      pairwise_distances(np.array([1.0, 2.0]))


class TestSimilarity(unittest.TestCase):
  def setUp(self):
    self.D = pairwise_distances(random_features())

  def test_gaussian_symmetric_and_bounded(self):
    S = gaussian_similarity(self.D, median_offdiagonal(self.D))
    np.testing.assert_allclose(S, S.T)
    self.assertTrue(np.all(S > 0))
    self.assertTrue(np.all(S <= 1))
    np.testing.assert_allclose(np.diag(S), 1.0)

  def test_gaussian_rejects_bad_sigma(self):
    for sigma in [0.0, -1.0, np.inf]:
      with self.assertRaises(InvalidInputError):
        gaussian_similarity(self.D, sigma)

  def test_epsilon_zero_has_no_edges(self):
    S = epsilon_similarity(self.D, 0.0)
    self.assertEqual(count_edges(S), 0)
    np.testing.assert_allclose(np.diag(S), 1.0)

  def test_epsilon_large_is_complete(self):
    S = epsilon_similarity(self.D, self.D.max())
    self.assertEqual(count_edges(S), 20 * 19)

  def test_knn_symmetrization_never_removes_edges(self):
    for k in [1, 2, 3, 5, 10]:
      directed = knn_adjacency(self.D, k)
      symmetric = knn_similarity(self.D, k)
      self.assertGreaterEqual(count_edges(symmetric), count_edges(directed))
      np.testing.assert_array_equal(symmetric, symmetric.T)
      np.testing.assert_array_equal(np.diag(symmetric), 0.0)
      np.testing.assert_array_equal(directed.sum(axis=1), k)

  def test_knn_rejects_bad_neighbor_count(self):
    with self.assertRaises(InvalidInputError):
      knn_adjacency(self.D, 0)
    with self.assertRaises(InvalidInputError):
      knn_adjacency(self.D, 20)
    with self.assertRaises(InvalidInputError):
      build_similarity(self.D, "knn", 2.5)

  def test_build_similarity_dispatch(self):
    sigma = median_offdiagonal(self.D)
    np.testing.assert_allclose(
        build_similarity(self.D, "gaussian", sigma),
        gaussian_similarity(self.D, sigma))
    np.testing.assert_array_equal(
        build_similarity(self.D, "knn", 4), knn_similarity(self.D, 4))
    with self.assertRaises(InvalidInputError):
      build_similarity(self.D, "cosine", 1.0)

  def test_parameter_grid(self):
    median = median_offdiagonal(self.D)
    grid = parameter_grid(self.D, "gaussian")
    self.assertEqual(len(grid), 10)
    self.assertAlmostEqual(grid[0], 0.1 * median)
    self.assertAlmostEqual(grid[-1], 2.0 * median)
    self.assertEqual(parameter_grid(self.D, "knn"), list(range(2, 16)))
    small = pairwise_distances(random_features(n=6))
    self.assertEqual(parameter_grid(small, "knn"), [2, 3, 4, 5])


class TestLaplacian(unittest.TestCase):
  def setUp(self):
    D = pairwise_distances(random_features())
    self.S = gaussian_similarity(D, median_offdiagonal(D))

  def test_normalized_symmetric_psd(self):
    L = build_laplacian(self.S, "normalized")
    np.testing.assert_allclose(L, L.T, atol=1e-12)
    eigenvalues = np.linalg.eigvalsh(L)
    self.assertGreater(eigenvalues.min(), -1e-8)
    self.assertAlmostEqual(eigenvalues.min(), 0.0, places=8)

  def test_unnormalized_and_random_walk_rows_sum_to_zero(self):
    for variant in ["unnormalized", "random_walk"]:
      L = build_laplacian(self.S, variant)
      np.testing.assert_allclose(L.sum(axis=1), 0.0, atol=1e-10)

  def test_diagonal_removed_unless_self_loops(self):
    degrees = degree_vector(self.S)
    L = build_laplacian(self.S, "unnormalized")
    np.testing.assert_allclose(np.diag(L), degrees - 1.0)
    L_loops = build_laplacian(self.S, "unnormalized", self_loops=True)
    np.testing.assert_allclose(np.diag(L_loops), degrees - 1.0)
    L_norm = build_laplacian(self.S, "normalized", self_loops=True)
    np.testing.assert_allclose(np.diag(L_norm), 1.0 - 1.0 / degrees)

  def test_isolated_node_is_degenerate(self):
    S = np.array([
        [0.0, 1.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 0.0, 0.0],
    ])
    with self.assertRaises(DegenerateGraphError):
      build_laplacian(S, "normalized")
    with self.assertRaises(DegenerateGraphError):
      build_laplacian(S, "random_walk")
    L = build_laplacian(S, "unnormalized")
    np.testing.assert_array_equal(L[2], 0.0)

  def test_empty_graph_is_degenerate(self):
    with self.assertRaises(DegenerateGraphError):
      build_laplacian(np.zeros((4, 4)), "unnormalized")
    with self.assertRaises(DegenerateGraphError):
      build_laplacian(np.eye(4), "normalized")

  def test_invalid_inputs(self):
    with self.assertRaises(InvalidInputError):
      build_laplacian(self.S, "signless")
    with self.assertRaises(InvalidInputError):
      build_laplacian(-self.S, "normalized")
    with self.assertRaises(InvalidInputError):
      build_laplacian(np.ones((3, 4)), "normalized")


class TestEmbedding(unittest.TestCase):
  def setUp(self):
    D = pairwise_distances(random_features())
    S = gaussian_similarity(D, median_offdiagonal(D))
    self.L = build_laplacian(S, "normalized")

  def test_rows_are_unit_length(self):
    result = spectral_embed(self.L, 3)
    self.assertEqual(result.embedding.shape, (20, 3))
    np.testing.assert_allclose(np.linalg.norm(result.embedding, axis=1), 1.0)
    self.assertTrue(np.all(np.diff(result.eigenvalues) >= -1e-12))

  def test_drop_first_selects_following_eigenvectors(self):
    _, vectors = eigendecompose(self.L)
    skipped = spectral_embed(self.L, 2, drop_first=True)
    kept = spectral_embed(self.L, 2, drop_first=False)
    np.testing.assert_allclose(skipped.eigenvectors, vectors[:, 1:3])
    np.testing.assert_allclose(kept.eigenvectors, vectors[:, 0:2])

  def test_too_many_components(self):
    with self.assertRaises(InvalidInputError):
      spectral_embed(self.L, 20, drop_first=True)
    with self.assertRaises(InvalidInputError):
      spectral_embed(self.L, 0)
    self.assertEqual(spectral_embed(self.L, 20, drop_first=False).embedding.shape, (20, 20))

  def test_random_walk_uses_general_solver(self):
    D = pairwise_distances(random_features())
    S = gaussian_similarity(D, median_offdiagonal(D))
    L_rw = build_laplacian(S, "random_walk")
    result = spectral_embed(L_rw, 2, symmetric=False)
    self.assertAlmostEqual(result.eigenvalues[0], 0.0, places=8)
    self.assertTrue(np.all(np.isfinite(result.embedding)))

  def test_solver_failure_is_reported(self):
    with mock.patch("scipy.linalg.eigh", side_effect=np.linalg.LinAlgError("no convergence")):
      with self.assertRaises(EigenDecompositionError):
        spectral_embed(self.L, 2)

  def test_eigengap_estimate(self):
    eigenvalues = np.array([0.0, 0.0, 0.0, 0.9, 1.0, 1.1])
    self.assertEqual(eigengap_estimate(eigenvalues, min_k=2, max_k=5), 3)
    with self.assertRaises(InvalidInputError):
      eigengap_estimate(eigenvalues, min_k=6, max_k=10)


if __name__ == "__main__":
  unittest.main()
