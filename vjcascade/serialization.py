import logging
import pickle

from vjcascade.errors import ResourceError, SerializationError

logger = logging.getLogger(__name__)

HEADER = 'header'
HYPOTHESIS = 'hypothesis'
STAGE_SEPARATOR = 'stage'
FOOTER = 'footer'


class StrongHypothesisWriter:
    """
    Appends the cascade to a file as a stream of pickled records:
    a header, then per stage its hypotheses and a separator holding the
    stage threshold, then a footer.
    """

    def __init__(self, name):
        self.name = name
        self.stage = 0
        try:
            self._f = open(name, 'wb')
        except OSError as e:
            raise ResourceError('Cannot open strong hypothesis file {}: {}'.format(name, e))

    def _dump(self, record):
        pickle.dump(record, self._f)
        self._f.flush()

    def write_header(self, learner_name):
        self._dump((HEADER, learner_name))

    def append_hypothesis(self, iteration, hypothesis):
        # learners leave their training data out of the pickle
        self._dump((HYPOTHESIS, self.stage, iteration, hypothesis))

    def append_stage_separator(self, threshold=None):
        self._dump((STAGE_SEPARATOR, self.stage, threshold))
        self.stage += 1

    def write_footer(self):
        self._dump((FOOTER, self.stage))
        self.close()

    def close(self):
        if not self._f.closed:
            self._f.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def load_strong_hypothesis(name):
    """
    :param name: file written by StrongHypothesisWriter
    :return: (learner name, list of (hypotheses, threshold) per stage)
    """
    learner_name = None
    stages = []
    current = []
    try:
        with open(name, 'rb') as f:
            while True:
                try:
                    record = pickle.load(f)
                except EOFError:
                    raise SerializationError('{} ends without a footer'.format(name))
                kind = record[0]
                if kind == HEADER:
                    learner_name = record[1]
                elif kind == HYPOTHESIS:
                    current.append(record[3])
                elif kind == STAGE_SEPARATOR:
                    stages.append((current, record[2]))
                    current = []
                elif kind == FOOTER:
                    break
                else:
                    raise SerializationError('Unknown record {!r} in {}'.format(kind, name))
    except OSError as e:
        raise ResourceError('Cannot read strong hypothesis file {}: {}'.format(name, e))
    if current:
        logger.warning('%d hypotheses after the last stage separator in %s are ignored', len(current), name)
    logger.info('Loaded %d stages of %s from %s', len(stages), learner_name, name)
    return learner_name, stages
