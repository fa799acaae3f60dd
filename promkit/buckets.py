"""Bucket boundary helpers for histograms."""
from typing import List

import numpy as np


def linear_buckets(start: float, width: float, count: int) -> List[float]:
    """
    Generate ``count`` buckets starting at ``start``, each ``width`` apart.

    Example: linear_buckets(0, 10, 3) -> [0, 10, 20]
    """
    if count < 1:
        raise ValueError("Linear buckets needs a positive count")
    if width <= 0:
        raise ValueError("Linear buckets needs a positive width")

    return [float(b) for b in start + width * np.arange(count)]


def exponential_buckets(start: float, factor: float, count: int) -> List[float]:
    """
    Generate ``count`` buckets starting at ``start``, each ``factor`` times the previous.

    Example: exponential_buckets(1, 2, 4) -> [1, 2, 4, 8]
    """
    if start <= 0:
        raise ValueError("Exponential buckets needs a positive start value")
    if factor <= 1:
        raise ValueError("Exponential buckets needs a factor greater than 1")
    if count < 1:
        raise ValueError("Exponential buckets needs a positive count")

    return [float(b) for b in start * np.power(float(factor), np.arange(count))]
