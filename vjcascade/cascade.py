import logging

import numpy as np

from vjcascade.booster import StageBooster
from vjcascade.errors import ConfigurationError, ResourceError
from vjcascade.metrics import auc, forecast_rates
from vjcascade.serialization import StrongHypothesisWriter
from vjcascade.tracker import ActiveSetTracker, PosteriorAccumulator
from vjcascade.weak_learners import default_registry
from vjcascade.weights import reset_weights

logger = logging.getLogger(__name__)

PARTITION_COLUMNS = ['fpr', 'tpr', 'auc', 'avg_stage', 'avg_hyp']


class StageReport:
    """Tab separated per-stage metrics, one row per stage after a header line."""

    def __init__(self, name=None, with_test=False):
        self.columns = ['stage', 'hypotheses']
        self.columns += ['valid_' + c for c in PARTITION_COLUMNS]
        if with_test:
            self.columns += ['test_' + c for c in PARTITION_COLUMNS]
        self.columns += ['train_size', 'train_pos', 'train_neg']
        self.rows = []
        self._f = None
        if name:
            try:
                self._f = open(name, 'w')
            except OSError as e:
                raise ResourceError('Cannot open output info file {}: {}'.format(name, e))
            self._f.write('\t'.join(self.columns) + '\n')

    def write(self, row):
        values = [row[c] for c in self.columns]
        line = '\t'.join('{:.6f}'.format(v) if isinstance(v, float) else str(v) for v in values)
        self.rows.append(row)
        if self._f is not None:
            self._f.write(line + '\n')
            self._f.flush()
        logger.info('Stage report: %s', ', '.join('{}={}'.format(c, v) for c, v in zip(self.columns, line.split('\t'))))

    def close(self):
        if self._f is not None and not self._f.closed:
            self._f.close()


class CascadeTrainer:
    """
    Trains a Viola-Jones cascade: every stage is an AdaBoost ensemble whose
    threshold keeps the detection rate while the false positive rate of the
    whole cascade drops by max_acceptable_false_positive_rate per stage.
    Negatives a stage rejects are dropped from the training set of later stages.
    """

    def __init__(self, config, registry=None):
        self.config = config.validate()
        self.registry = registry if registry is not None else default_registry()
        self.stages = []
        self.trackers = {}
        self.report = None

    def _check_partitions(self, train, partitions):
        positive = train.index_from_name(self.config.positive_label_name)
        for data in partitions.values():
            if data.class_names != train.class_names:
                raise ConfigurationError('Classes of {} ({}) differ from the training classes ({})'.format(
                    data.name, ', '.join(data.class_names), ', '.join(train.class_names)))
        return positive

    def _partition_metrics(self, prefix, accumulator, tracker, entered):
        truth = accumulator.data.is_positive(accumulator.class_index)
        fpr, tpr = forecast_rates(truth, tracker.forecast)
        return {
            prefix + 'fpr': fpr,
            prefix + 'tpr': tpr,
            prefix + 'auc': auc(truth[entered], accumulator.posteriors[entered]),
            prefix + 'avg_stage': tracker.average_stage(),
            prefix + 'avg_hyp': tracker.average_hypothesis_count(),
        }

    def run(self, train, valid, test=None):
        """
        :param train: training InputData
        :param valid: validation InputData, used to tune thresholds and decide when a stage is done
        :param test: optional InputData, only reported on
        :return: the list of trained stages
        """
        config = self.config
        partitions = {'valid': valid}
        if test is not None:
            partitions['test'] = test
        positive = self._check_partitions(train, partitions)
        partitions['train'] = train

        booster = StageBooster(self.registry, config)
        self.report = StageReport(config.output_info_file, with_test=test is not None)
        try:
            writer = StrongHypothesisWriter(config.shyp_file)
        except ResourceError:
            self.report.close()
            raise

        self.trackers = {name: ActiveSetTracker(data.num_raw_examples()) for name, data in partitions.items()}
        accumulators = {name: PosteriorAccumulator(data, positive) for name, data in partitions.items()}
        train_truth = train.is_positive(positive)

        Fi = 1.0
        Di = 1.0
        hypothesis_count = 0
        self.stages = []
        try:
            writer.write_header(config.base_learner_name)
            logger.info('Learning in progress...')
            for number in range(1, config.num_stages + 1):
                train_tracker = self.trackers['train']
                train.load_index_set(train_tracker.active_indices())
                reset_weights(train, config.weight_policy, config.weight_tolerance)
                for accumulator in accumulators.values():
                    accumulator.reset()

                Fi *= config.max_acceptable_false_positive_rate
                Di *= config.min_acceptable_detection_rate
                logger.info('Stage %d: %d training examples, target FPR < %.6f, target TPR >= %.6f',
                            number, train.num_examples(), Fi, Di)

                stage = booster.boost(number, train, accumulators, self.trackers['valid'], Fi, Di, writer)
                writer.append_stage_separator(stage.threshold)
                self.stages.append(stage)
                hypothesis_count += len(stage)
                logger.info('Stage %d done: %d hypotheses, threshold %.5f, valid TPR %.4f, valid FPR %.4f',
                            number, len(stage), stage.threshold, stage.tpr, stage.fpr)

                row = {'stage': number, 'hypotheses': len(stage)}
                for name in ('valid', 'test'):
                    if name not in partitions:
                        continue
                    tracker = self.trackers[name]
                    entered = tracker.active.copy()
                    tracker.forecast_over_cascade(accumulators[name].posteriors, stage.threshold,
                                                  number, hypothesis_count)
                    row.update(self._partition_metrics(name + '_', accumulators[name], tracker, entered))

                dropped = train_tracker.filter_training(accumulators['train'].posteriors, stage.threshold,
                                                        train_truth, number, hypothesis_count)
                active = train_tracker.active
                num_pos = int(np.count_nonzero(active & train_truth))
                num_neg = int(np.count_nonzero(active & ~train_truth))
                logger.info('Stage %d dropped %d easy negatives from training', number, len(dropped))
                row.update({'train_size': num_pos + num_neg, 'train_pos': num_pos, 'train_neg': num_neg})
                self.report.write(row)

                # may end before num_stages: a stage needs negatives to train on
                if num_neg == 0:
                    logger.info('Number of false positives is 0. Stop training.')
                    break

            writer.write_footer()
        finally:
            writer.close()
            self.report.close()
            train.clear_index_set()

        logger.info('Learning completed.')
        return self.stages
