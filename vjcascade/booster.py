import logging

import numpy as np

from vjcascade.metrics import ThresholdResult, tune_threshold
from vjcascade.weak_learners import ConstantLearner
from vjcascade.weights import check_weight_sum, update_weights

logger = logging.getLogger(__name__)


class Stage:
    """One cascade stage: its weak hypotheses in order and the decision threshold."""

    def __init__(self, number):
        self.number = number
        self.hypotheses = []
        self.threshold = None
        self.tpr = 0.0
        self.fpr = 1.0

    def __len__(self):
        return len(self.hypotheses)

    def __repr__(self):
        return 'Stage({}, hypotheses={}, threshold={}, tpr={:.4f}, fpr={:.4f})'.format(
            self.number, len(self.hypotheses), self.threshold, self.tpr, self.fpr)


class StageBooster:
    """
    AdaBoost for a single cascade stage. Each iteration selects a weak
    hypothesis, re-weights the training examples, adds the hypothesis to the
    posteriors of every partition and tunes the stage threshold on the
    validation partition.
    """

    def __init__(self, registry, config):
        self.config = config
        # resolved once, every iteration creates its learners from these
        self.learner_source = registry.get(config.base_learner_name, config)
        self.constant_source = registry.get(ConstantLearner.name, config)

    def select_hypothesis(self, train):
        """
        :return: (hypothesis, Found energy) of the chosen weak learner
        """
        hypothesis = self.learner_source.create()
        hypothesis.set_training_data(train)
        result = hypothesis.run()

        # the constant learner steps in when asked for or when no split was found
        if self.config.with_constant_learner or not result.found:
            constant = self.constant_source.create()
            constant.set_training_data(train)
            constant_result = constant.run()
            if not result.found or constant_result.energy <= result.energy:
                hypothesis, result = constant, constant_result
        return hypothesis, result

    def current_rates(self, accumulator, tracker, target):
        """
        Rates of the cascade with the stage so far on a partition. Examples
        rejected by earlier stages count as rejected.
        """
        truth = accumulator.data.is_positive(accumulator.class_index)
        active = tracker.active
        num_pos = int(np.count_nonzero(truth))
        return tune_threshold(accumulator.posteriors[active], truth[active], target,
                              num_positives=num_pos, num_negatives=truth.shape[0] - num_pos)

    def boost(self, number, train, accumulators, valid_tracker, Fi, Di, writer=None):
        """
        :param number: 1-based stage number
        :param train: training InputData with the active set and weights loaded
        :param accumulators: PosteriorAccumulator per partition name, 'valid' is required
        :param valid_tracker: ActiveSetTracker of the validation partition
        :param Fi: false positive rate the cascade must get below
        :param Di: detection rate the threshold must keep
        :param writer: StrongHypothesisWriter, or None
        :return: the finished Stage
        """
        stage = Stage(number)
        result = ThresholdResult(None, 0.0, 1.0)
        t = 0
        while True:
            logger.debug('------- STAGE %d WORKING ON ITERATION %d -------', number, t + 1)

            hypothesis, energy = self.select_hypothesis(train)
            # committed: never taken back within the stage
            stage.hypotheses.append(hypothesis)
            if writer is not None:
                writer.append_hypothesis(t, hypothesis)

            gamma = update_weights(train, hypothesis)
            check_weight_sum(train, self.config.weight_tolerance)
            logger.debug('Weak learner: %s', hypothesis)
            logger.debug('--> Alpha = %.5f, Edge = %.5f, Energy = %.5f', hypothesis.get_alpha(), gamma, energy.energy)
            if gamma <= 0:
                # not a stop condition, the stage ends on its false positive rate or the cap
                logger.info("Can't train any further: edge = %g", gamma)

            for accumulator in accumulators.values():
                accumulator.add(hypothesis)

            result = self.current_rates(accumulators['valid'], valid_tracker, Di)
            t += 1
            logger.debug('--> Threshold = %.5f, TPR = %.4f, FPR = %.4f (target FPR < %.6f)',
                         result.threshold, result.tpr, result.fpr, Fi)

            if t >= self.config.min_iterations and result.fpr < Fi:
                break
            if t >= self.config.max_iterations:
                logger.warning('Stage %d reached %d iterations with FPR %.4f >= %.6f, closing the stage',
                               number, t, result.fpr, Fi)
                break

        stage.threshold, stage.tpr, stage.fpr = result
        return stage
