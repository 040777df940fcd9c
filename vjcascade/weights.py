import logging

import numpy as np

from vjcascade.utils import is_zero

logger = logging.getLogger(__name__)


def check_weight_sum(data, tolerance=1E-3):
    """
    :return: True when the weights of the active label entries sum to one
    """
    total = float(data.weights().sum())
    if not is_zero(total - 1.0, tolerance):
        logger.warning('Sum of weights (%.6f) != 1 in %s', total, data.name)
        return False
    return True


def reset_weights(data, policy='balanced', tolerance=1E-3):
    """
    Set the initial weights of a stage over the active examples.

    uniform:  every entry of class l gets 1 / (2 * positives(l))
    balanced: positive entries of class l get 1 / (4 * positives(l)),
              negative entries 1 / (4 * (examples - positives(l)))

    :return: the total weight mass
    """
    Y = data.labels()
    n = Y.shape[0]
    num_pos = np.count_nonzero(Y > 0, axis=0)
    W = np.zeros(Y.shape)

    for idx in range(Y.shape[1]):
        if num_pos[idx] == 0:
            logger.warning('Class %s has no positive examples in %s, its entries get zero weight',
                           data.class_names[idx], data.name)
        if policy == 'uniform':
            if num_pos[idx] > 0:
                W[Y[:, idx] != 0, idx] = 1.0 / (2.0 * num_pos[idx])
        elif policy == 'balanced':
            num_neg = n - num_pos[idx]
            if num_pos[idx] > 0:
                W[Y[:, idx] > 0, idx] = 1.0 / (4.0 * num_pos[idx])
            if num_neg > 0:
                W[Y[:, idx] < 0, idx] = 1.0 / (4.0 * num_neg)
        else:
            raise ValueError('Unknown weight policy {!r}'.format(policy))

    data.set_weights(W)
    if not check_weight_sum(data, tolerance):
        logger.warning('Try a different weight policy than %r', policy)
    return float(W.sum())


def update_weights(data, hypothesis):
    """
    AdaBoost.MH re-weighting of the active examples by one weak hypothesis.

    :return: the edge gamma = sum(w * h * y), computed with the weights before the update
    """
    alpha = hypothesis.get_alpha()
    W = data.weights()
    # h_l(x_i) * y_i, zero where an example has no entry for the class
    hy = hypothesis.predict(data.features()) * data.labels()

    # the normalization factor, before any weight changes
    factors = np.exp(-alpha * hy)
    Z = float(np.sum(W * factors))
    gamma = float(np.sum(W * hy))

    if Z <= 0:
        logger.warning('Normalization factor Z = %g, weights of %s left unchanged', Z, data.name)
        return gamma

    data.set_weights(W * factors / Z)
    return gamma
