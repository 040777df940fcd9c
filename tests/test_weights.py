"""Tests for weight reset and AdaBoost re-weighting."""

import logging

import numpy as np
import pytest

from vjcascade.data import InputData
from vjcascade.weights import check_weight_sum, reset_weights, update_weights

from conftest import CLASSES


class FixedHypothesis:
    """Hypothesis with a given margin matrix."""

    def __init__(self, margins, alpha):
        self.margins = np.asarray(margins, dtype=float)
        self.alpha = alpha

    def get_alpha(self):
        return self.alpha

    def predict(self, X):
        return self.margins[:len(X)]


class TestResetWeights:

    def test_balanced_policy_sums_to_one(self, blobs_train):
        total = reset_weights(blobs_train, 'balanced')

        assert total == pytest.approx(1.0)
        assert check_weight_sum(blobs_train)

    def test_balanced_policy_splits_mass_by_sign(self, blobs_train):
        reset_weights(blobs_train, 'balanced')
        W, Y = blobs_train.weights(), blobs_train.labels()

        for idx in range(len(CLASSES)):
            assert W[Y[:, idx] > 0, idx].sum() == pytest.approx(0.25)
            assert W[Y[:, idx] < 0, idx].sum() == pytest.approx(0.25)

    def test_uniform_policy_on_own_class_labels(self):
        data = InputData.from_class_indices([[0], [1], [2], [3], [4]], [1, 1, 0, 0, 0], CLASSES, dense=False)

        total = reset_weights(data, 'uniform')

        assert total == pytest.approx(1.0)
        assert data.weights()[0, 1] == pytest.approx(0.25)
        assert data.weights()[2, 0] == pytest.approx(1 / 6)

    def test_uniform_policy_on_dense_labels_warns(self, blobs_train, caplog):
        with caplog.at_level(logging.WARNING):
            total = reset_weights(blobs_train, 'uniform')

        assert total != pytest.approx(1.0)
        assert 'Sum of weights' in caplog.text

    def test_only_active_examples_are_weighted(self, blobs_train):
        blobs_train.W[:] = 7.0
        active = list(range(0, 200, 2))
        blobs_train.load_index_set(active)

        reset_weights(blobs_train, 'balanced')

        assert blobs_train.weights().sum() == pytest.approx(1.0)
        assert np.all(blobs_train.W[1::2] == 7.0)

    def test_class_without_positives_warns(self, caplog):
        data = InputData.from_class_indices([[0], [1], [2]], [0, 0, 0], CLASSES)

        with caplog.at_level(logging.WARNING):
            reset_weights(data, 'balanced')

        assert 'no positive examples' in caplog.text
        assert np.all(data.weights()[:, 1] == pytest.approx(1 / 12))


class TestUpdateWeights:

    def test_edge_and_new_weights(self, four_examples):
        reset_weights(four_examples, 'balanced')
        before = four_examples.weights().copy()
        margins = np.array([[-1, 1], [1, -1], [1, -1], [1, -1]], dtype=float)
        alpha = 0.7

        gamma = update_weights(four_examples, FixedHypothesis(margins, alpha))

        hy = margins * four_examples.labels()
        assert gamma == pytest.approx(np.sum(before * hy))
        expected = before * np.exp(-alpha * hy)
        np.testing.assert_allclose(four_examples.weights(), expected / expected.sum())
        assert four_examples.weights().sum() == pytest.approx(1.0)

    def test_edge_is_bounded(self, blobs_train):
        reset_weights(blobs_train, 'balanced')
        rng = np.random.default_rng(3)
        margins = rng.choice([-1.0, 1.0], size=(200, 2))

        gamma = update_weights(blobs_train, FixedHypothesis(margins, 0.3))

        assert -1.0 <= gamma <= 1.0

    def test_perfect_hypothesis_keeps_weights(self, four_examples):
        reset_weights(four_examples, 'balanced')
        before = four_examples.weights().copy()
        margins = four_examples.labels().astype(float)

        gamma = update_weights(four_examples, FixedHypothesis(margins, 2.0))

        assert gamma == pytest.approx(1.0)
        np.testing.assert_allclose(four_examples.weights(), before)

    def test_update_is_restricted_to_active_set(self, four_examples):
        four_examples.load_index_set([0, 2])
        reset_weights(four_examples, 'balanced')
        four_examples.W[[1, 3]] = 5.0

        update_weights(four_examples, FixedHypothesis(np.ones((2, 2)), 1.0))

        assert np.all(four_examples.W[[1, 3]] == 5.0)
        assert four_examples.weights().sum() == pytest.approx(1.0)

    def test_no_weight_mass_leaves_weights(self, four_examples, caplog):
        with caplog.at_level(logging.WARNING):
            update_weights(four_examples, FixedHypothesis(np.ones((4, 2)), 1.0))

        assert 'Normalization factor' in caplog.text
        assert np.all(four_examples.weights() == 0)
