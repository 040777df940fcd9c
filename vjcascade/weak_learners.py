import logging
from abc import ABC, abstractmethod
from collections import namedtuple

import numpy as np

from vjcascade.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Found(namedtuple('Found', ['energy'])):
    """A weak learner found a hypothesis with this training energy."""
    found = True


class NotFound:
    """A weak learner found no usable split."""
    found = False
    energy = None

    def __repr__(self):
        return 'NOT_FOUND'


NOT_FOUND = NotFound()


def alpha_and_energy(gamma, mass, smoothing):
    """
    Discrete AdaBoost.MH vote and energy for an edge.

    :param gamma: the edge, sum of w * h * y
    :param mass: the total weight of the label entries
    :param smoothing: keeps alpha finite when the edge is perfect
    :return: (alpha, energy)
    """
    eps_pls = max((mass + gamma) / 2, 0.0)
    eps_min = max((mass - gamma) / 2, 0.0)
    alpha = 0.5 * np.log((eps_pls + smoothing) / (eps_min + smoothing))
    energy = 2 * np.sqrt(eps_pls * eps_min)
    return float(alpha), float(energy)


class BaseLearner(ABC):
    """
    A weak hypothesis. run() trains it on the active rows of the training data,
    after which predict() gives h(x, l) for every example and class.
    """
    name = 'BaseLearner'

    def __init__(self):
        self.alpha = 0.0
        self.v = None  # vote per class
        self._config = None
        self._training_data = None

    def create(self):
        learner = type(self)()
        learner.init_options(self._config)
        return learner

    def init_options(self, config):
        self._config = config

    def set_training_data(self, data):
        self._training_data = data

    def get_alpha(self):
        return self.alpha

    @abstractmethod
    def run(self):
        """:return: Found(energy) or NOT_FOUND"""

    @abstractmethod
    def predict(self, X):
        """:return: h(x, l) as an examples x classes matrix"""

    def classify(self, data, i, idx):
        """
        :param data: InputData, i is an index into its active set
        :return: the signed margin of example i for class idx
        """
        return float(self.predict(data.features()[i:i + 1])[0, idx])

    def _weighted_labels(self):
        data = self._training_data
        W = data.weights()
        return W * data.labels(), float(W.sum()), data.num_examples()

    def __getstate__(self):
        state = self.__dict__.copy()
        state['_training_data'] = None
        state['_config'] = None
        if '_rng' in state:
            state['_rng'] = None
        return state

    def __str__(self):
        return '{}(alpha={:.5f})'.format(self.name, self.alpha)


class ConstantLearner(BaseLearner):
    """Votes the same sign for every example; always finds a hypothesis."""
    name = 'ConstantLearner'

    def run(self):
        C, mass, n = self._weighted_labels()
        total = C.sum(axis=0)
        self.v = np.where(total >= 0, 1.0, -1.0)
        gamma = float(np.abs(total).sum())
        self.alpha, energy = alpha_and_energy(gamma, mass, 0.01 / max(n, 1))
        return Found(energy)

    def predict(self, X):
        return np.tile(self.v, (np.asarray(X).shape[0], 1))


class SingleStumpLearner(BaseLearner):
    """
    Decision stump phi(x) = +1 if x[column] >= threshold else -1 with a vote
    per class, h(x, l) = v[l] * phi(x).
    """
    name = 'SingleStumpLearner'

    def __init__(self):
        super().__init__()
        self.column = -1
        self.threshold = None
        self.max_features = None
        self._rng = None

    def init_options(self, config):
        super().init_options(config)
        self.max_features = getattr(config, 'max_features', None)
        self._rng = np.random.default_rng(getattr(config, 'seed', None))

    def create(self):
        learner = super().create()
        learner._rng = self._rng  # share the stream, so stage iterations see different columns
        return learner

    def _columns(self, num_columns):
        if self.max_features is None or self.max_features >= num_columns:
            return range(num_columns)
        if self._rng is None:
            self._rng = np.random.default_rng()
        return np.sort(self._rng.choice(num_columns, self.max_features, replace=False))

    def run(self):
        C, mass, n = self._weighted_labels()
        if n < 2:
            return NOT_FOUND
        X = self._training_data.features()
        smoothing = 0.01 / n
        T = C.sum(axis=0)
        best_E = np.inf

        for j in self._columns(X.shape[1]):
            ordering = np.argsort(X[:, j], kind='stable')
            x = X[ordering, j]
            # one pass for the weighted label sums below every cut
            S = np.cumsum(C[ordering], axis=0)[:-1]
            valid = x[1:] > x[:-1]
            if not valid.any():
                continue
            # class-wise edge of the stump cutting after position k
            s = T - 2 * S
            edges = np.abs(s).sum(axis=1)
            edges[~valid] = -np.inf
            k = int(np.argmax(edges))
            alpha, E = alpha_and_energy(float(edges[k]), mass, smoothing)
            if E < best_E and alpha > 0:
                best_E = E
                self.alpha = alpha
                self.v = np.where(s[k] >= 0, 1.0, -1.0)
                self.column = int(j)
                self.threshold = float((x[k] + x[k + 1]) / 2)

        if self.column < 0:
            logger.debug('No column gives a positive edge')
            return NOT_FOUND
        return Found(float(best_E))

    def predict(self, X):
        X = np.asarray(X)
        phi = np.where(X[:, self.column] >= self.threshold, 1.0, -1.0)
        return phi[:, None] * self.v[None, :]

    def __str__(self):
        return '{}(column={}, threshold={:.5g}, alpha={:.5f})'.format(
            self.name, self.column, self.threshold if self.threshold is not None else float('nan'), self.alpha)


class LearnerRegistry:
    """Maps learner type names to the classes that build them."""

    def __init__(self):
        self._factories = {}

    def register(self, name, factory):
        self._factories[name] = factory
        return factory

    def __contains__(self, name):
        return name in self._factories

    def names(self):
        return sorted(self._factories)

    def get(self, name, config=None):
        """
        :return: an untrained learner whose create() yields fresh learners of this type
        """
        try:
            factory = self._factories[name]
        except KeyError:
            raise ConfigurationError('Unknown weak learner {!r}, registered: {}'.format(
                name, ', '.join(self.names())))
        learner = factory()
        learner.init_options(config)
        return learner


def default_registry():
    registry = LearnerRegistry()
    registry.register(SingleStumpLearner.name, SingleStumpLearner)
    registry.register(ConstantLearner.name, ConstantLearner)
    return registry
