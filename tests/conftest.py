"""Shared pytest fixtures for the cascade tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from vjcascade.config import CascadeConfig
from vjcascade.data import InputData

CLASSES = ['background', 'face']


def make_blobs(num_pos, num_neg, seed, name='data'):
    """Faces around (2, 2), background around (0, 0)."""
    rng = np.random.default_rng(seed)
    X = np.vstack((rng.normal(2.0, 1.0, (num_pos, 2)), rng.normal(0.0, 1.0, (num_neg, 2))))
    y = np.array([1] * num_pos + [0] * num_neg)
    return InputData.from_class_indices(X, y, CLASSES, name=name)


@pytest.fixture
def four_examples():
    """Truth [+, +, -, -], perfectly separated by the only feature."""
    return InputData.from_class_indices([[1.0], [1.0], [0.0], [0.0]], [1, 1, 0, 0], CLASSES, name='four')


@pytest.fixture
def blobs_train():
    return make_blobs(40, 160, seed=0, name='train')


@pytest.fixture
def blobs_valid():
    return make_blobs(40, 160, seed=1, name='valid')


@pytest.fixture
def config(tmp_path):
    return CascadeConfig(
        positive_label_name='face',
        num_stages=3,
        max_acceptable_false_positive_rate=0.5,
        min_acceptable_detection_rate=0.95,
        max_iterations=100,
        shyp_file=str(tmp_path / 'shyp.pkl'),
        output_info_file=str(tmp_path / 'report.txt'),
    )
