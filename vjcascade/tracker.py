from collections import namedtuple

import numpy as np

CascadeOutputInfo = namedtuple('CascadeOutputInfo',
                               ['active', 'forecast', 'classified_in_stage', 'classifier_count_used', 'score'])


class PosteriorAccumulator:
    """Running sum of alpha * h(x, positive class) over the hypotheses of the current stage."""

    def __init__(self, data, class_index):
        self.data = data
        self.class_index = class_index
        self.posteriors = np.zeros(data.num_raw_examples())

    def reset(self):
        self.posteriors = np.zeros(self.data.num_raw_examples())

    def add(self, hypothesis):
        # every example of the partition, whatever the active set
        margins = hypothesis.predict(self.data.X)[:, self.class_index]
        self.posteriors += hypothesis.get_alpha() * margins
        return self.posteriors


class ActiveSetTracker:
    """
    Cascade state of each example of one partition. An example is active while
    every stage so far accepted it; the record of a rejected example is frozen
    at the stage that rejected it.
    """

    def __init__(self, num_examples):
        self.active = np.ones(num_examples, dtype=bool)
        self.forecast = np.ones(num_examples, dtype=int)
        self.classified_in_stage = np.zeros(num_examples, dtype=int)
        self.classifier_count_used = np.zeros(num_examples, dtype=int)
        self.score = np.zeros(num_examples)

    def __len__(self):
        return self.active.shape[0]

    def active_indices(self):
        return np.flatnonzero(self.active)

    def info(self, i):
        return CascadeOutputInfo(bool(self.active[i]), int(self.forecast[i]), int(self.classified_in_stage[i]),
                                 int(self.classifier_count_used[i]), float(self.score[i]))

    def _stamp(self, evaluated, posteriors, stage_number, hypothesis_count):
        self.classified_in_stage[evaluated] = stage_number
        self.classifier_count_used[evaluated] = hypothesis_count
        self.score[evaluated] = posteriors[evaluated]

    def forecast_over_cascade(self, posteriors, threshold, stage_number, hypothesis_count):
        """
        Apply a finished stage to the examples still in the cascade.

        :param stage_number: 1-based number of stages completed so far
        :param hypothesis_count: weak hypotheses in all stages so far
        :return: indices of the examples rejected by this stage
        """
        posteriors = np.asarray(posteriors, dtype=float)
        evaluated = self.active.copy()
        rejected = evaluated & (posteriors < threshold)
        self.active[rejected] = False
        self.forecast[evaluated] = np.where(rejected[evaluated], 0, 1)
        self._stamp(evaluated, posteriors, stage_number, hypothesis_count)
        return np.flatnonzero(rejected)

    def filter_training(self, posteriors, threshold, is_positive, stage_number, hypothesis_count):
        """
        Hard negative mining: positives always stay, a negative stays only if this
        stage still accepts it.

        :return: indices of the negatives dropped from training
        """
        posteriors = np.asarray(posteriors, dtype=float)
        is_positive = np.asarray(is_positive, dtype=bool)
        evaluated = self.active.copy()
        accepted = posteriors >= threshold
        dropped = evaluated & ~is_positive & ~accepted
        self.active[dropped] = False
        self.forecast[evaluated] = np.where(accepted[evaluated], 1, 0)
        self._stamp(evaluated, posteriors, stage_number, hypothesis_count)
        return np.flatnonzero(dropped)

    def average_stage(self):
        return float(self.classified_in_stage.mean()) if len(self) else 0.0

    def average_hypothesis_count(self):
        return float(self.classifier_count_used.mean()) if len(self) else 0.0
