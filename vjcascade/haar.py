import logging
from pathlib import Path

import cv2
import numpy as np
from sklearn.feature_selection import SelectKBest
from tqdm import tqdm

from vjcascade.data import InputData
from vjcascade.errors import ResourceError
from vjcascade.utils import compute_feature_using_integral, compute_integral_image, normalize, read

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.pgm', '.png', '.jpg', '.jpeg', '.bmp')

# (rows, cols) of blocks and the sign of every block, row major
HAAR_TEMPLATES = [
    (2, 1, (1, -1)),
    (1, 2, (1, -1)),
    (3, 1, (1, -1, 1)),
    (1, 3, (1, -1, 1)),
    (2, 2, (1, -1, -1, 1)),
]


def create_haar_features(size, templates=HAAR_TEMPLATES):
    """
    Enumerate the two, three and four rectangle features of a size x size window.
    Every template is placed with blocks of at least 2 x 2 pixels at every
    position where it fits, once with its signs and once inverted.

    :return: list of (positive regions, negative regions), regions as ((t, l), (b, r))
    """
    features = []
    for x in range(size):
        for y in range(size):
            for bh in range(2, size - x + 1):
                for bw in range(2, size - y + 1):
                    for rows, cols, signs in templates:
                        if x + rows * bh > size or y + cols * bw > size:
                            continue
                        blocks = [((x + i * bh, y + j * bw), (x + (i + 1) * bh - 1, y + (j + 1) * bw - 1))
                                  for i in range(rows) for j in range(cols)]
                        pos = [b for b, s in zip(blocks, signs) if s > 0]
                        neg = [b for b, s in zip(blocks, signs) if s < 0]
                        features.append((pos, neg))
                        features.append((neg, pos))
    return features


def compute_feature_matrix(integral_images, features, verbose=True):
    """
    :param integral_images: array of shape (n, size, size)
    :return: a images x features matrix
    """
    S = np.asarray(integral_images, dtype=float)
    ret = np.zeros((S.shape[0], len(features)))
    for i in tqdm(range(len(features)), disable=not verbose):
        ret[:, i] = compute_feature_using_integral(S, features[i])
    return ret


def prelim_feature_selection(X, y, k=500):
    """
    Keep the k features with the best ANOVA F score on the training partition.

    :return: the boolean support mask and the reduced matrix
    """
    k = min(k, X.shape[1])
    f_sel = SelectKBest(k=k)
    f_sel.fit(X, y)
    return f_sel.get_support(), f_sel.transform(X)


def read_image_folder(root, size, class_names=None):
    """
    Read <root>/<class name>/<image> as normalised integral images.

    :return: (integral images, class index per image, class names)
    """
    root = Path(root)
    if not root.is_dir():
        raise ResourceError('Image folder {} does not exist'.format(root))
    if class_names is None:
        class_names = sorted(p.name for p in root.iterdir() if p.is_dir())
    images = []
    y = []
    for idx, class_name in enumerate(class_names):
        class_dir = root / class_name
        if not class_dir.is_dir():
            logger.warning('No folder for class %s under %s', class_name, root)
            continue
        for path in sorted(class_dir.iterdir()):
            if path.suffix.lower() not in IMAGE_EXTENSIONS:
                continue
            img = read(path)
            if img is None:
                logger.warning('Cannot decode image %s, skipped', path)
                continue
            img = cv2.resize(img, (size, size))
            images.append(compute_integral_image(normalize(img)))
            y.append(idx)
    if not images:
        raise ResourceError('No images found under {}'.format(root))
    logger.info('Read %d images of %d classes from %s', len(images), len(class_names), root)
    return np.array(images), np.array(y), class_names


class HaarDataset:
    """
    Turns image folders into InputData sharing one Haar feature set.

    The feature selection is fitted on the first (training) folder and the
    same columns are used for every later partition.
    """

    def __init__(self, size, select_k=None, verbose=True):
        self.size = size
        self.select_k = select_k
        self.verbose = verbose
        self.features = create_haar_features(size)
        self.class_names = None

    def load(self, root, name=None):
        images, y, class_names = read_image_folder(root, self.size, self.class_names)
        X = compute_feature_matrix(images, self.features, self.verbose)
        if self.class_names is None:
            self.class_names = class_names
            if self.select_k:
                mask, X = prelim_feature_selection(X, y, self.select_k)
                self.features = [f for f, keep in zip(self.features, mask) if keep]
                logger.info('Kept %d Haar features after preliminary selection', len(self.features))
        return InputData.from_class_indices(X, y, self.class_names, name=name or str(root))
