'''
Evaluation metrics for the aggregated labels.
'''
import numpy as np
from sklearn import metrics as skm


def accuracy(gold, pred):
    '''
    Fraction of tasks with a gold label whose predicted label matches it. Tasks with gold label -1 are skipped.

    :return: accuracy, or nan if no task has a gold label.
    '''
    gold = np.asarray(gold, dtype=int)
    pred = np.asarray(pred, dtype=int)
    goldidxs = gold != -1
    if not np.any(goldidxs):
        return np.nan
    return skm.accuracy_score(gold[goldidxs], pred[goldidxs])


def recall_by_class(gold, pred, nclasses):
    '''
    :return: recall of each class, nan for classes with no gold examples.
    '''
    gold = np.asarray(gold, dtype=int)
    pred = np.asarray(pred, dtype=int)
    goldidxs = gold != -1

    rec = np.zeros(nclasses) + np.nan
    if not np.any(goldidxs):
        return rec

    present = np.isin(np.arange(nclasses), gold[goldidxs])
    rec_all = skm.recall_score(gold[goldidxs], pred[goldidxs], average=None, labels=range(nclasses),
                               zero_division=0)
    rec[present] = rec_all[present]
    return rec


def avg_recall(gold, pred, nclasses):
    '''
    Recall averaged over the classes that appear in the gold labels.
    '''
    rec = recall_by_class(gold, pred, nclasses)
    if np.all(np.isnan(rec)):
        return np.nan
    return np.nanmean(rec)


def _rate(numerator, denominator):
    return numerator / float(denominator) if denominator > 0 else np.nan


class BinaryConfusionMatrix(object):
    '''
    2x2 confusion matrix for a binary decision.
    '''

    def __init__(self, true_positives, true_negatives, false_positives, false_negatives):
        self.true_positives = true_positives
        self.true_negatives = true_negatives
        self.false_positives = false_positives
        self.false_negatives = false_negatives

    @classmethod
    def from_predictions(cls, gold, pred, positive_label=1):
        gold = np.asarray(gold) == positive_label
        pred = np.asarray(pred) == positive_label
        tn, fp, fn, tp = skm.confusion_matrix(gold, pred, labels=[False, True]).ravel()
        return cls(int(tp), int(tn), int(fp), int(fn))

    @property
    def sensitivity(self):
        '''
        True positive rate, TP / (TP + FN).
        '''
        return _rate(self.true_positives, self.true_positives + self.false_negatives)

    @property
    def specificity(self):
        '''
        True negative rate, TN / (FP + TN).
        '''
        return _rate(self.true_negatives, self.true_negatives + self.false_positives)

    @property
    def false_positive_rate(self):
        return _rate(self.false_positives, self.false_positives + self.true_negatives)

    def __repr__(self):
        return 'BinaryConfusionMatrix(tp=%i, tn=%i, fp=%i, fn=%i)' % (self.true_positives, self.true_negatives,
                                                                      self.false_positives, self.false_negatives)


class ROCCurve(object):

    def __init__(self, measurement, prediction):
        '''
        :param measurement: binary gold values. The larger value is the positive class.
        :param prediction: scores for the positive class, e.g. the posterior probability of class 1.
        '''
        measurement = np.asarray(measurement, dtype=float)
        self.prediction = np.asarray(prediction, dtype=float)
        if measurement.shape != self.prediction.shape:
            raise ValueError('Got %i measurements but %i predictions' % (measurement.size, self.prediction.size))
        if measurement.size == 0:
            raise ValueError('Cannot compute a ROC curve without any measurements')

        self.positive = measurement == np.max(measurement)
        self.positive_count = int(np.sum(self.positive))
        self.negative_count = int(self.positive.size - self.positive_count)

        self.false_positive_rate, self.true_positive_rate, self.thresholds = skm.roc_curve(
            self.positive, self.prediction)
        self.area = skm.auc(self.false_positive_rate, self.true_positive_rate)

    def point(self, threshold):
        '''
        :return: BinaryConfusionMatrix for predicting the positive class when the score is at least threshold.
        '''
        return BinaryConfusionMatrix.from_predictions(self.positive, self.prediction >= threshold, True)

    @property
    def standard_error(self):
        '''
        Hanley and McNeil's standard error of the area under the curve.
        '''
        A = self.area
        Na = self.positive_count
        Nn = self.negative_count
        if Na == 0 or Nn == 0:
            return np.nan

        Q1 = A / (2.0 - A)
        Q2 = 2 * A * A / (1.0 + A)

        return np.sqrt((A * (1.0 - A) + (Na - 1.0) * (Q1 - A * A) + (Nn - 1.0) * (Q2 - A * A)) / (Na * Nn))
