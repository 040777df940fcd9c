"""Tests for the strong hypothesis file."""

import pickle

import numpy as np
import pytest

from vjcascade.errors import ResourceError, SerializationError
from vjcascade.serialization import StrongHypothesisWriter, load_strong_hypothesis
from vjcascade.weak_learners import ConstantLearner, SingleStumpLearner
from vjcascade.weights import reset_weights


def trained_learners(data):
    reset_weights(data)
    learners = []
    for learner in (SingleStumpLearner(), ConstantLearner()):
        learner.set_training_data(data)
        learner.run()
        learners.append(learner)
    return learners


def test_stages_are_read_back(four_examples, tmp_path):
    stump, constant = trained_learners(four_examples)
    name = tmp_path / 'shyp.pkl'

    writer = StrongHypothesisWriter(name)
    writer.write_header('SingleStumpLearner')
    writer.append_hypothesis(0, stump)
    writer.append_hypothesis(1, constant)
    writer.append_stage_separator(0.25)
    writer.append_hypothesis(0, stump)
    writer.append_stage_separator(-1.0)
    writer.write_footer()

    learner_name, stages = load_strong_hypothesis(name)

    assert learner_name == 'SingleStumpLearner'
    assert [len(h) for h, _ in stages] == [2, 1]
    assert [t for _, t in stages] == [0.25, -1.0]
    loaded = stages[0][0][0]
    assert loaded.alpha == stump.alpha
    np.testing.assert_array_equal(loaded.predict(four_examples.X), stump.predict(four_examples.X))


def test_training_data_is_not_written(four_examples, tmp_path):
    stump, _ = trained_learners(four_examples)
    name = tmp_path / 'shyp.pkl'

    with StrongHypothesisWriter(name) as writer:
        writer.append_hypothesis(0, stump)

    with open(name, 'rb') as f:
        record = pickle.load(f)
    assert record[-1]._training_data is None
    assert stump._training_data is four_examples


def test_missing_footer(tmp_path):
    name = tmp_path / 'shyp.pkl'
    with StrongHypothesisWriter(name) as writer:
        writer.write_header('SingleStumpLearner')
        writer.append_stage_separator(0.0)

    with pytest.raises(SerializationError, match='footer'):
        load_strong_hypothesis(name)


def test_unopenable_files(tmp_path):
    with pytest.raises(ResourceError):
        StrongHypothesisWriter(tmp_path / 'missing' / 'shyp.pkl')
    with pytest.raises(ResourceError):
        load_strong_hypothesis(tmp_path / 'nothing.pkl')
