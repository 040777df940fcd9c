from dataclasses import dataclass, fields

from vjcascade.errors import ConfigurationError

WEIGHT_POLICIES = ('uniform', 'balanced')


@dataclass
class CascadeConfig:
    """
    Options consumed by the cascade trainer.

    :param num_stages: number of cascade stages to train
    :param max_acceptable_false_positive_rate: f, the per-stage false positive factor
    :param min_acceptable_detection_rate: d, the per-stage detection factor
    :param positive_label_name: name of the class the cascade detects
    :param with_constant_learner: always try the constant learner next to the base learner
    :param weight_policy: 'uniform' or 'balanced' initial weights for each stage
    :param max_iterations: cap on boosting iterations in a single stage
    :param min_iterations: a stage never stops before this many iterations
    """
    positive_label_name: str = None
    num_stages: int = 10
    base_learner_name: str = 'SingleStumpLearner'
    max_acceptable_false_positive_rate: float = 0.05
    min_acceptable_detection_rate: float = 0.95
    with_constant_learner: bool = False
    verbose: int = 1
    weight_policy: str = 'balanced'
    max_iterations: int = 1000
    min_iterations: int = 2
    weight_tolerance: float = 1E-3
    shyp_file: str = 'shyp.pkl'
    output_info_file: str = None
    max_features: int = None
    seed: int = None

    def validate(self):
        if not self.positive_label_name:
            raise ConfigurationError('The name of the positive label is required (--positive-label)')
        if self.num_stages < 1:
            raise ConfigurationError('The number of stages must be positive, got {}'.format(self.num_stages))
        if not 0 < self.max_acceptable_false_positive_rate <= 1:
            raise ConfigurationError('The acceptable false positive rate must be in (0, 1], got {}'
                                     .format(self.max_acceptable_false_positive_rate))
        if not 0 < self.min_acceptable_detection_rate <= 1:
            raise ConfigurationError('The acceptable detection rate must be in (0, 1], got {}'
                                     .format(self.min_acceptable_detection_rate))
        if self.weight_policy not in WEIGHT_POLICIES:
            raise ConfigurationError('Unknown weight policy {!r}, use one of {}'
                                     .format(self.weight_policy, ', '.join(WEIGHT_POLICIES)))
        if self.min_iterations < 1 or self.max_iterations < self.min_iterations:
            raise ConfigurationError('Iteration bounds must satisfy 1 <= min ({}) <= max ({})'
                                     .format(self.min_iterations, self.max_iterations))
        if self.max_features is not None and self.max_features < 1:
            raise ConfigurationError('max_features must be positive, got {}'.format(self.max_features))
        return self

    @classmethod
    def from_args(cls, args):
        """
        :param args: an argparse namespace, attributes named like the fields
        :return: a validated config
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in vars(args).items() if k in known and v is not None}
        return cls(**values).validate()
