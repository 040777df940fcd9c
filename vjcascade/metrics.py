from collections import namedtuple

import numpy as np
from sklearn.metrics import confusion_matrix

ThresholdResult = namedtuple('ThresholdResult', ['threshold', 'tpr', 'fpr'])

EPSILON = 1E-10


def rate(count, total):
    # an empty denominator gives a zero rate
    return count / total if total > 0 else 0.0


def tune_threshold(posteriors, is_positive, target, num_positives=None, num_negatives=None):
    """
    Find the highest threshold whose detection rate reaches the target.
    An example is accepted when its posterior is >= threshold.

    :param posteriors: scores of the examples taking part in the search
    :param is_positive: ground truth of those examples
    :param target: the detection rate to reach
    :param num_positives: denominator of the detection rate, defaults to the positives given
    :param num_negatives: denominator of the false positive rate, defaults to the negatives given
    :return: ThresholdResult(threshold, tpr, fpr)
    """
    posteriors = np.asarray(posteriors, dtype=float)
    is_positive = np.asarray(is_positive, dtype=bool)
    if num_positives is None:
        num_positives = int(np.count_nonzero(is_positive))
    if num_negatives is None:
        num_negatives = int(is_positive.shape[0] - np.count_nonzero(is_positive))

    if posteriors.shape[0] == 0:
        return ThresholdResult(EPSILON, 0.0, 0.0)

    # nothing accepted yet
    threshold = float(posteriors.max()) + EPSILON
    if num_positives == 0 or target <= 0:
        return ThresholdResult(threshold, 0.0, 0.0)

    ordering = np.argsort(-posteriors, kind='stable')
    scores = posteriors[ordering]
    truth = is_positive[ordering]
    TP = np.cumsum(truth)
    FP = np.cumsum(~truth)

    # last position of every run of equal posteriors
    run_ends = np.flatnonzero(np.append(scores[1:] != scores[:-1], True))
    tpr = fpr = 0.0
    for end in run_ends:
        if end + 1 < scores.shape[0]:
            threshold = float((scores[end] + scores[end + 1]) / 2)
        else:
            threshold = float(scores[end])
        tpr = rate(int(TP[end]), num_positives)
        fpr = rate(int(FP[end]), num_negatives)
        if tpr >= target:
            break
    return ThresholdResult(threshold, tpr, fpr)


def auc(labels, scores):
    """
    Area under the ROC curve by the trapezoid rule.

    :param labels: True for positive examples
    :param scores: higher means more positive
    :return: AUC in [0, 1]
    """
    labels = np.asarray(labels, dtype=bool)
    scores = np.asarray(scores, dtype=float)
    if scores.shape[0] == 0:
        return 0.5
    pos_num = int(np.count_nonzero(labels))
    neg_num = labels.shape[0] - pos_num

    ordering = np.argsort(-scores, kind='stable')
    scores = scores[ordering]
    labels = labels[ordering]
    TP = np.cumsum(labels)
    FP = np.cumsum(~labels)

    # points above each distinct score, i.e. through every run but the last
    run_ends = np.flatnonzero(scores[1:] != scores[:-1])
    fpr = np.array([rate(int(FP[e]), neg_num) for e in run_ends])
    tpr = np.array([rate(int(TP[e]), pos_num) for e in run_ends])
    fpr = np.concatenate(([0.0], fpr, [1.0]))
    tpr = np.concatenate(([0.0], tpr, [1.0]))

    points = np.unique(np.column_stack((fpr, tpr)), axis=0)  # sorted by fpr, then tpr
    x, y = points[:, 0], points[:, 1]
    return float(np.sum(np.diff(x) * (y[1:] + y[:-1]) / 2))


def forecast_rates(is_positive, forecast):
    """
    :return: (false positive rate, detection rate) of a 0/1 forecast
    """
    tn, fp, fn, tp = confusion_matrix(np.asarray(is_positive, dtype=int),
                                      np.asarray(forecast, dtype=int), labels=[0, 1]).ravel()
    return rate(fp, tn + fp), rate(tp, tp + fn)
