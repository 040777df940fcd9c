import cv2
import numpy as np


def read(name):  # default to read gray scale image
    return cv2.imread(str(name), cv2.IMREAD_GRAYSCALE)


def normalize(img):
    img = img.astype(float)
    return (img - img.mean()) / (img.std() + 1e-7)


def compute_integral_image(img):
    S = img
    for i in range(S.ndim):
        S = np.cumsum(S, axis=i)
    return S


def region_sum(S, region):
    """
    :param S: integral image, or a stack of them along the first axis
    :param region: ((top, left), (bottom, right)), both corners inclusive
    :return: the pixel sum of the region in every image
    """
    t, l = region[0]
    b, r = region[1]
    total = S[..., b, r]
    if t > 0:
        total = total - S[..., t - 1, r]
    if l > 0:
        total = total - S[..., b, l - 1]
    if t > 0 and l > 0:
        total = total + S[..., t - 1, l - 1]
    return total


def compute_feature_using_integral(S, feature):
    """
    :param S: An integral image (or a stack of them)
    :param feature: a tuple, containing the positive and negative regions
    :return:
    """
    pos, neg = feature
    rpos = sum(region_sum(S, region) for region in pos)
    rneg = sum(region_sum(S, region) for region in neg)
    return rpos - rneg


def is_zero(value, tolerance=1E-3):
    return abs(value) <= tolerance
