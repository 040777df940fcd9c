import logging
from collections import namedtuple

import numpy as np

from vjcascade.errors import ConfigurationError, ResourceError

logger = logging.getLogger(__name__)

# one label entry of an example: class index, sign (+1/-1) and its boosting weight
Label = namedtuple('Label', ['idx', 'y', 'weight'])


class InputData:
    """
    Examples of one dataset partition (train, validation or test).

    The label matrix Y holds +1/-1 for the classes an example carries an entry
    for and 0 otherwise. Weights live next to the labels and are only touched
    inside the active index set.
    """

    def __init__(self, X, Y, class_names, name='data'):
        self.X = np.asarray(X, dtype=float)
        if self.X.ndim == 1:
            self.X = self.X.reshape(-1, 1)
        self.Y = np.asarray(Y, dtype=int)
        if self.Y.shape != (self.X.shape[0], len(class_names)):
            raise ValueError('Label matrix has shape {}, expected {}'.format(
                self.Y.shape, (self.X.shape[0], len(class_names))))
        self.W = np.zeros(self.Y.shape)
        self.class_names = list(class_names)
        self.name = name
        self._index = np.arange(self.X.shape[0])

    @classmethod
    def from_class_indices(cls, X, y, class_names, dense=True, name='data'):
        """
        :param y: one class index per example
        :param dense: give every example a -1 entry for the classes it is not in
        """
        y = np.asarray(y, dtype=int)
        Y = np.full((y.shape[0], len(class_names)), -1 if dense else 0, dtype=int)
        Y[np.arange(y.shape[0]), y] = 1
        return cls(X, Y, class_names, name=name)

    def num_raw_examples(self):
        return self.X.shape[0]

    def num_examples(self):
        return self._index.shape[0]

    def num_classes(self):
        return len(self.class_names)

    def num_attributes(self):
        return self.X.shape[1]

    def load_index_set(self, indices):
        self._index = np.array(sorted(indices), dtype=int)

    def clear_index_set(self):
        self._index = np.arange(self.X.shape[0])

    def raw_index(self, i):
        return int(self._index[i])

    def index_from_name(self, name):
        try:
            return self.class_names.index(name)
        except ValueError:
            raise ConfigurationError('Unknown class name {!r} in {} (classes: {})'.format(
                name, self.name, ', '.join(self.class_names)))

    def labels_of(self, i):
        j = self._index[i]
        return [Label(idx, int(self.Y[j, idx]), float(self.W[j, idx]))
                for idx in np.flatnonzero(self.Y[j])]

    # views restricted to the active index set
    def features(self):
        return self.X[self._index]

    def labels(self):
        return self.Y[self._index]

    def weights(self):
        return self.W[self._index]

    def set_weights(self, W):
        self.W[self._index] = W

    def is_positive(self, class_index, active_only=False):
        Y = self.labels() if active_only else self.Y
        return Y[:, class_index] > 0

    def count_positive(self, class_index, active_only=False):
        return int(np.count_nonzero(self.is_positive(class_index, active_only)))


def load_text_data(path, class_names=None, delimiter=None, name=None):
    """
    Read a delimited text file, feature columns first and the class name last.

    :param class_names: fix the class order, so that partitions share class indices
    :return: InputData with dense +1/-1 labels
    """
    try:
        raw = np.genfromtxt(path, dtype=str, delimiter=delimiter, comments='#', ndmin=2)
    except OSError as e:
        raise ResourceError('Cannot read data file {}: {}'.format(path, e))
    except ValueError as e:
        raise ResourceError('Malformed data file {}: {}'.format(path, e))
    if raw.shape[0] == 0 or raw.shape[1] < 2:
        raise ResourceError('{} needs at least one feature column and a label column'.format(path))
    try:
        X = raw[:, :-1].astype(float)
    except ValueError as e:
        raise ResourceError('Non numeric feature in {}: {}'.format(path, e))
    names = [s.strip() for s in raw[:, -1]]
    if class_names is None:
        class_names = sorted(set(names))
    lookup = {c: i for i, c in enumerate(class_names)}
    unknown = set(names) - set(lookup)
    if unknown:
        raise ConfigurationError('{} contains unknown classes: {}'.format(path, ', '.join(sorted(unknown))))
    y = np.array([lookup[c] for c in names])
    logger.info('Loaded %d examples with %d attributes from %s', X.shape[0], X.shape[1], path)
    return InputData.from_class_indices(X, y, class_names, name=name or str(path))
