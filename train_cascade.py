import argparse
import logging
import sys
from pathlib import Path

from vjcascade.cascade import CascadeTrainer
from vjcascade.config import WEIGHT_POLICIES, CascadeConfig
from vjcascade.data import load_text_data
from vjcascade.errors import CascadeError
from vjcascade.haar import HaarDataset
from vjcascade.weak_learners import default_registry

logger = logging.getLogger(__name__)

VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO, 2: logging.DEBUG}


def setup_logging(verbose=1, log_file=None):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=VERBOSITY_LEVELS.get(verbose, logging.DEBUG),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=handlers,
    )


def build_parser():
    parser = argparse.ArgumentParser(description='Train a Viola-Jones cascade of boosted classifiers.')
    parser.add_argument('train', help='training data: a text file, or a folder with one sub-folder of images per class')
    parser.add_argument('valid', help='validation data, same format as the training data')
    parser.add_argument('--test', help='optional test data, only reported on')
    parser.add_argument('--stages', dest='num_stages', type=int, default=10, help='number of cascade stages')
    parser.add_argument('--positive-label', dest='positive_label_name', help='name of the class to detect')
    parser.add_argument('--learner', dest='base_learner_name', default='SingleStumpLearner',
                        help='weak learner type')
    parser.add_argument('--fpr', dest='max_acceptable_false_positive_rate', type=float, default=0.05,
                        help='maximum acceptable false positive rate per stage')
    parser.add_argument('--detection-rate', dest='min_acceptable_detection_rate', type=float, default=0.95,
                        help='minimum acceptable detection rate per stage')
    parser.add_argument('--constant-learner', dest='with_constant_learner', action='store_true',
                        help='always try the constant learner next to the weak learner')
    parser.add_argument('--weight-policy', choices=WEIGHT_POLICIES, default='balanced')
    parser.add_argument('--max-iterations', type=int, default=1000, help='boosting iterations cap per stage')
    parser.add_argument('--shyp', dest='shyp_file', default='shyp.pkl', help='strong hypothesis output file')
    parser.add_argument('--outputinfo', dest='output_info_file', help='per-stage report file')
    parser.add_argument('--max-features', type=int, help='columns each stump looks at, chosen at random')
    parser.add_argument('--seed', type=int)
    parser.add_argument('--delimiter', help='column delimiter of text data, whitespace by default')
    parser.add_argument('--image-size', type=int, default=17, help='detection window size for image folders')
    parser.add_argument('--select-k', type=int, help='keep this many Haar features after preliminary selection')
    parser.add_argument('--verbose', type=int, default=1, choices=[0, 1, 2])
    parser.add_argument('--log-file')
    return parser


def load_partitions(args):
    paths = [args.train, args.valid] + ([args.test] if args.test else [])
    names = ['train', 'valid', 'test']
    if Path(args.train).is_dir():
        dataset = HaarDataset(args.image_size, select_k=args.select_k, verbose=args.verbose > 0)
        loaded = [dataset.load(path, name) for path, name in zip(paths, names)]
    else:
        train = load_text_data(args.train, delimiter=args.delimiter, name='train')
        loaded = [train] + [load_text_data(path, class_names=train.class_names, delimiter=args.delimiter, name=name)
                            for path, name in zip(paths[1:], names[1:])]
    return loaded + [None] * (3 - len(loaded))


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)
    try:
        config = CascadeConfig.from_args(args)
        train, valid, test = load_partitions(args)
        trainer = CascadeTrainer(config, default_registry())
        stages = trainer.run(train, valid, test)
    except CascadeError as e:
        logger.error('%s', e)
        return 1
    logger.info('Trained %d stages, strong hypothesis saved to %s', len(stages), config.shyp_file)
    return 0


if __name__ == '__main__':
    sys.exit(main())
