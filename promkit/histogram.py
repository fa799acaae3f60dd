"""Histogram metric."""
import math
import time
from dataclasses import dataclass
from numbers import Real
from typing import Callable, List, Optional, Sequence

import numpy as np

from promkit.errors import InvalidValueError, MetricConfigurationError
from promkit.labels import EMPTY_KEY, LabelKey, LabelSet, label_key
from promkit.metric import Metric
from promkit.series import Sample
from promkit.snapshot import MetricType

DEFAULT_BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10]


def _check_buckets(buckets: Sequence[float]) -> List[float]:
    bounds = [float(b) for b in buckets]
    if bounds and math.isinf(bounds[-1]) and bounds[-1] > 0:
        bounds = bounds[:-1]
    if not bounds:
        raise MetricConfigurationError("Histogram needs at least one finite bucket")
    if any(math.isnan(b) for b in bounds) or any(b >= n for b, n in zip(bounds, bounds[1:])):
        raise MetricConfigurationError(f"Buckets must be strictly increasing: {list(buckets)}")
    return bounds


@dataclass
class _HistogramValues:
    labels: LabelSet
    counts: List[int]
    sum: float = 0.0
    count: int = 0


class HistogramChild:
    """Histogram bound to one label set."""

    def __init__(self, histogram: "Histogram", labels: LabelSet):
        self._histogram = histogram
        self._labels = labels
        self._key = label_key(labels)

    def observe(self, value: float) -> None:
        self._histogram._observe(self._labels, self._key, value)

    def start_timer(self) -> Callable[[], float]:
        return self._histogram._timer(self._labels, self._key)


class Histogram(Metric):
    """
    Counts observations into configurable cumulative buckets.

    Rendered as ``<name>_bucket`` samples (one per bound plus ``+Inf``)
    followed by ``<name>_sum`` and ``<name>_count``.
    """

    type = MetricType.HISTOGRAM
    reserved_labels = ("le",)

    def __init__(self, name: str, help: str, label_names: Sequence[str] = (),
                 buckets: Optional[Sequence[float]] = None, **kwargs):
        self.upper_bounds = _check_buckets(DEFAULT_BUCKETS if buckets is None else buckets)
        self._bounds_array = np.asarray(self.upper_bounds)
        super().__init__(name, help, label_names, **kwargs)

    def reset(self) -> None:
        self.hash_map = {}
        if not self.label_names:
            self.hash_map[EMPTY_KEY] = self._empty({})

    def observe(self, value: float) -> None:
        self._observe({}, EMPTY_KEY, value)

    def observe_with_labels(self, labels: LabelSet, value: float) -> None:
        labels = self._check_labels(labels)
        self._observe(labels, label_key(labels), value)

    def start_timer(self, labels: Optional[LabelSet] = None) -> Callable[[], float]:
        """Returns a function that observes the elapsed seconds when called."""
        labels = self._check_labels(labels or {})
        return self._timer(labels, label_key(labels))

    def labels(self, *values, **labels) -> HistogramChild:
        return HistogramChild(self, self._resolve(values, labels))

    def _empty(self, labels: LabelSet) -> _HistogramValues:
        return _HistogramValues(dict(labels), [0] * len(self.upper_bounds))

    def _observe(self, labels: LabelSet, key: LabelKey, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, Real) or math.isnan(value):
            raise InvalidValueError(f"Value is not a valid number: {value!r}")

        entry = self.hash_map.get(key)
        if entry is None:
            entry = self.hash_map[key] = self._empty(labels)

        # first bucket whose upper bound is >= value
        index = int(np.searchsorted(self._bounds_array, value, side="left"))
        if index < len(entry.counts):
            entry.counts[index] += 1
        entry.sum += value
        entry.count += 1

    def _timer(self, labels: LabelSet, key: LabelKey) -> Callable[[], float]:
        start = time.perf_counter()

        def end() -> float:
            elapsed = time.perf_counter() - start
            self._observe(labels, key, elapsed)
            return elapsed

        return end

    def _samples(self) -> List[Sample]:
        samples = []
        for entry in self.hash_map.values():
            cumulative = np.cumsum(entry.counts)
            for bound, count in zip(self.upper_bounds, cumulative):
                samples.append(Sample(int(count), {**entry.labels, "le": bound}, f"{self.name}_bucket"))
            samples.append(Sample(entry.count, {**entry.labels, "le": "+Inf"}, f"{self.name}_bucket"))
            samples.append(Sample(entry.sum, dict(entry.labels), f"{self.name}_sum"))
            samples.append(Sample(entry.count, dict(entry.labels), f"{self.name}_count"))
        return samples
