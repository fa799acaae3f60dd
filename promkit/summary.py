"""Summary metric with sliding-window quantiles."""
import math
import time
from collections import deque
from dataclasses import dataclass
from numbers import Real
from typing import Callable, Deque, List, Optional, Sequence, Tuple

import numpy as np

from promkit.errors import InvalidValueError, MetricConfigurationError
from promkit.labels import EMPTY_KEY, LabelKey, LabelSet, label_key
from promkit.metric import Metric
from promkit.series import Sample
from promkit.snapshot import MetricType

DEFAULT_PERCENTILES = [0.01, 0.05, 0.5, 0.9, 0.95, 0.99, 0.999]
DEFAULT_MAX_SAMPLES = 1024


@dataclass
class _SummaryValues:
    labels: LabelSet
    window: Deque[Tuple[float, float]]
    sum: float = 0.0
    count: int = 0


class SummaryChild:
    """Summary bound to one label set."""

    def __init__(self, summary: "Summary", labels: LabelSet):
        self._summary = summary
        self._labels = labels
        self._key = label_key(labels)

    def observe(self, value: float) -> None:
        self._summary._observe(self._labels, self._key, value)

    def start_timer(self) -> Callable[[], float]:
        return self._summary._timer(self._labels, self._key)


class Summary(Metric):
    """
    Tracks quantiles over recent observations plus lifetime sum and count.

    Quantiles are computed over at most ``max_samples`` observations per
    series, further restricted to the last ``max_age_seconds`` when set.
    """

    type = MetricType.SUMMARY
    reserved_labels = ("quantile",)

    def __init__(self, name: str, help: str, label_names: Sequence[str] = (),
                 percentiles: Optional[Sequence[float]] = None,
                 max_age_seconds: Optional[float] = None,
                 max_samples: int = DEFAULT_MAX_SAMPLES, **kwargs):
        percentiles = list(DEFAULT_PERCENTILES if percentiles is None else percentiles)
        if not percentiles or any(not 0 <= p <= 1 for p in percentiles):
            raise MetricConfigurationError(f"Percentiles must be within [0, 1]: {percentiles}")
        if max_age_seconds is not None and max_age_seconds <= 0:
            raise MetricConfigurationError("max_age_seconds must be positive")
        if max_samples < 1:
            raise MetricConfigurationError("max_samples must be at least 1")

        self.percentiles = sorted(percentiles)
        self.max_age_seconds = max_age_seconds
        self.max_samples = max_samples
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
        labels = self._check_labels(labels or {})
        return self._timer(labels, label_key(labels))

    def labels(self, *values, **labels) -> SummaryChild:
        return SummaryChild(self, self._resolve(values, labels))

    def _empty(self, labels: LabelSet) -> _SummaryValues:
        return _SummaryValues(dict(labels), deque(maxlen=self.max_samples))

    def _observe(self, labels: LabelSet, key: LabelKey, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, Real) or math.isnan(value):
            raise InvalidValueError(f"Value is not a valid number: {value!r}")

        entry = self.hash_map.get(key)
        if entry is None:
            entry = self.hash_map[key] = self._empty(labels)

        now = time.monotonic()
        entry.window.append((now, value))
        self._expire(entry, now)
        entry.sum += value
        entry.count += 1

    def _expire(self, entry: _SummaryValues, now: float) -> None:
        if self.max_age_seconds is None:
            return
        cutoff = now - self.max_age_seconds
        while entry.window and entry.window[0][0] < cutoff:
            entry.window.popleft()

    def _timer(self, labels: LabelSet, key: LabelKey) -> Callable[[], float]:
        start = time.perf_counter()

        def end() -> float:
            elapsed = time.perf_counter() - start
            self._observe(labels, key, elapsed)
            return elapsed

        return end

    def _quantiles(self, entry: _SummaryValues) -> List[float]:
        # read-only: expired observations are skipped here and dropped on the next observe
        cutoff = None if self.max_age_seconds is None else time.monotonic() - self.max_age_seconds
        values = np.fromiter(
            (v for t, v in entry.window if cutoff is None or t >= cutoff), dtype=float
        )
        if values.size == 0:
            return [math.nan] * len(self.percentiles)
        return [float(q) for q in np.quantile(values, self.percentiles)]

    def _samples(self) -> List[Sample]:
        samples = []
        for entry in self.hash_map.values():
            for percentile, value in zip(self.percentiles, self._quantiles(entry)):
                samples.append(Sample(value, {**entry.labels, "quantile": percentile}))
            samples.append(Sample(entry.sum, dict(entry.labels), f"{self.name}_sum"))
            samples.append(Sample(entry.count, dict(entry.labels), f"{self.name}_count"))
        return samples
