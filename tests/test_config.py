import os
import tempfile
import unittest

import numpy as np
import pandas as pd

from spectral_pcm.config import Config, get_default_config, reset_config
from spectral_pcm.data import FeatureMatrix, check_feature_array, check_n_clusters
from spectral_pcm.exceptions import InvalidInputError
from spectral_pcm.optimization import SelectionConfig, SweepConfig
from spectral_pcm.clustering import FCMConfig, PCMConfig


class TestConfig(unittest.TestCase):
  def setUp(self):
    reset_config()

  def tearDown(self):
    reset_config()

  def test_singleton(self):
    first = get_default_config()
    first.pcm.eta_factor = 2.0
    self.assertIs(Config(), first)
    self.assertEqual(Config().pcm.eta_factor, 2.0)
    reset_config()
    self.assertEqual(get_default_config().pcm.eta_factor, 1.5)

  def test_params_build_valid_configs(self):
    config = get_default_config()
    self.assertEqual(PCMConfig(n_clusters=3, **config.get_pcm_params()).eta_factor, 1.5)
    self.assertEqual(FCMConfig(n_clusters=3, **config.get_fcm_params()).m, 2.0)
    sweep = SweepConfig(n_clusters=3, **config.get_sweep_params())
    self.assertEqual(sweep.kernels, ("gaussian", "epsilon", "knn"))
    selection = SelectionConfig(**config.get_selection_params())
    self.assertEqual(selection.n_references, 10)

  def test_update_from_dict(self):
    config = get_default_config()
    config.update_from_dict({
        "pcm": {"epsilon": 1e-6, "not_a_field": 1},
        "selection": {"method": "gap"},
        "unknown_section": {"x": 1},
    })
    self.assertEqual(config.pcm.epsilon, 1e-6)
    self.assertFalse(hasattr(config.pcm, "not_a_field"))
    self.assertEqual(config.selection.method, "gap")

  def test_save_and_load(self):
    config = get_default_config()
    config.selection.k_max = 7
    config.data.random_seed = 11
    with tempfile.TemporaryDirectory() as directory:
      path = os.path.join(directory, "config.json")
      config.save_config(path)
      reset_config()
      loaded = get_default_config()
      self.assertEqual(loaded.selection.k_max, 10)
      loaded.load_config(path)
    self.assertEqual(loaded.selection.k_max, 7)
    self.assertEqual(loaded.get_pcm_params()["random_state"], 11)


class TestFeatureMatrix(unittest.TestCase):
  def test_read_only_copy(self):
    values = np.array([[1.0, 2.0], [3.0, 5.0], [4.0, 1.0]])
    features = FeatureMatrix.from_array(values, columns=["age", "bmi"])
    values[0, 0] = 100.0
    self.assertEqual(features.values[0, 0], 1.0)
    self.assertEqual(features.shape, (3, 2))
    self.assertEqual(len(features), 3)
    self.assertEqual(features.columns, ["age", "bmi"])
    with self.assertRaises(ValueError):
      features.values[0, 0] = 5.0

  def test_default_column_names(self):
    features = FeatureMatrix.from_array(np.array([[1.0, 2.0], [2.0, 1.0]]))
    self.assertEqual(features.columns, ["feature_0", "feature_1"])

  def test_invalid_matrices(self):
    with self.assertRaises(InvalidInputError):
      FeatureMatrix.from_array(np.array([[1.0, 2.0], [1.0, 3.0]]))
    with self.assertRaises(InvalidInputError):
      FeatureMatrix.from_array(np.array([[1.0, np.inf], [2.0, 3.0]]))
    with self.assertRaises(InvalidInputError):
      FeatureMatrix.from_array(np.array([[1.0, 2.0], [2.0, 1.0]]), columns=["a"])

  def test_from_dataframe(self):
    data = pd.DataFrame({
        "id": ["a", "b", "c", "d"],
        "x": [1.0, 2.0, 3.0, 4.0],
        "y": [10.0, 0.0, 5.0, 1.0],
    })
    features = FeatureMatrix.from_dataframe(data, standardize=True)
    self.assertEqual(features.columns, ["x", "y"])
    np.testing.assert_allclose(features.values.mean(axis=0), 0.0, atol=1e-12)
    with self.assertRaises(InvalidInputError):
      FeatureMatrix.from_dataframe(data[["id"]])

  def test_checks(self):
    features = FeatureMatrix.from_array(np.array([[1.0, 2.0], [2.0, 1.0]]))
    self.assertIs(check_feature_array(features), features.values)
    self.assertEqual(check_n_clusters(2, 3), 2)
    with self.assertRaises(InvalidInputError):
      check_n_clusters(0, 3)
    with self.assertRaises(InvalidInputError):
      check_n_clusters(3, 3)


if __name__ == "__main__":
  unittest.main()
