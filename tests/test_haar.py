"""Tests for integral images and Haar-like features."""

import cv2
import numpy as np
import pytest

from vjcascade.errors import ResourceError
from vjcascade.haar import (HaarDataset, compute_feature_matrix, create_haar_features, prelim_feature_selection,
                            read_image_folder)
from vjcascade.utils import compute_feature_using_integral, compute_integral_image, region_sum


def test_integral_image_region_sums():
    img = np.arange(20.0).reshape(4, 5)
    S = compute_integral_image(img)

    assert region_sum(S, ((0, 0), (3, 4))) == img.sum()
    assert region_sum(S, ((1, 2), (2, 3))) == img[1:3, 2:4].sum()
    assert region_sum(S, ((0, 1), (1, 1))) == img[0:2, 1:2].sum()


def test_features_stay_inside_the_window():
    size = 6
    features = create_haar_features(size)

    assert len(features) > 0
    for pos, neg in features:
        for (t, l), (b, r) in pos + neg:
            assert 0 <= t <= b < size
            assert 0 <= l <= r < size


def test_feature_count_of_a_small_window():
    # 2x1 and 1x2 layouts fit 6 ways each, the 2x2 layout once, every one in both signs
    assert len(create_haar_features(4)) == 26


def test_four_rectangle_feature_on_a_checkerboard():
    img = np.zeros((4, 4))
    img[:2, :2] = 1.0
    img[2:, 2:] = 1.0
    S = compute_integral_image(img)
    checker = [f for f in create_haar_features(4) if len(f[0]) == 2 and len(f[1]) == 2]

    values = sorted(compute_feature_using_integral(S, f) for f in checker)

    assert values == [-8.0, 8.0]


def test_two_rectangle_feature():
    img = np.zeros((4, 4))
    img[2:, :] = 1.0
    S = compute_integral_image(img)
    feature = ([((2, 0), (3, 3))], [((0, 0), (1, 3))])

    assert compute_feature_using_integral(S, feature) == 8.0


def test_feature_matrix_matches_single_images():
    rng = np.random.default_rng(0)
    images = np.array([compute_integral_image(rng.normal(size=(5, 5))) for _ in range(3)])
    features = create_haar_features(5)[:20]

    X = compute_feature_matrix(images, features, verbose=False)

    assert X.shape == (3, 20)
    for j in (0, 7, 19):
        assert X[1, j] == pytest.approx(compute_feature_using_integral(images[1], features[j]))


def test_prelim_feature_selection():
    rng = np.random.default_rng(0)
    X = rng.normal(size=(40, 6))
    y = np.array([0, 1] * 20)
    X[:, 4] += 3 * y

    mask, reduced = prelim_feature_selection(X, y, k=2)

    assert reduced.shape == (40, 2)
    assert mask[4]


@pytest.fixture
def image_root(tmp_path):
    rng = np.random.default_rng(0)
    for class_name, bright_top in (('face', True), ('background', False)):
        folder = tmp_path / 'train' / class_name
        folder.mkdir(parents=True)
        for i in range(4):
            img = rng.integers(0, 60, (12, 12)).astype(np.uint8)
            if bright_top:
                img[:6] += 150
            cv2.imwrite(str(folder / '{}.pgm'.format(i)), img)
    (tmp_path / 'train' / 'face' / 'notes.txt').write_text('not an image')
    return tmp_path / 'train'


def test_read_image_folder(image_root):
    images, y, class_names = read_image_folder(image_root, 6)

    assert class_names == ['background', 'face']
    assert images.shape == (8, 6, 6)
    assert np.count_nonzero(y == 1) == 4


def test_missing_image_folder(tmp_path):
    with pytest.raises(ResourceError):
        read_image_folder(tmp_path / 'nothing', 6)


def test_haar_dataset_shares_features(image_root):
    dataset = HaarDataset(6, select_k=10, verbose=False)

    train = dataset.load(image_root, 'train')
    valid = dataset.load(image_root, 'valid')

    assert train.num_attributes() == 10
    assert valid.num_attributes() == 10
    assert len(dataset.features) == 10
    assert valid.class_names == train.class_names
    np.testing.assert_allclose(valid.X, train.X)
