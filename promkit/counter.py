"""Counter metric."""
import math
from numbers import Real
from typing import List, Optional

from promkit.errors import CounterDecreaseError, InvalidValueError
from promkit.labels import EMPTY_KEY, LabelKey, LabelSet, label_key
from promkit.metric import Metric
from promkit.series import Sample
from promkit.snapshot import MetricType


def _check_increment(value: Optional[float]) -> float:
    if value is None:
        return 1
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise InvalidValueError(f"Value is not a valid number: {value!r}")
    if value < 0:
        raise CounterDecreaseError(value)
    return value


class CounterChild:
    """Counter bound to one label set."""

    def __init__(self, counter: "Counter", labels: LabelSet):
        self._counter = counter
        self._labels = labels
        self._key = label_key(labels)

    def inc(self, value: Optional[float] = None) -> None:
        self._counter._inc(self._labels, self._key, value)


class Counter(Metric):
    """A cumulative metric that only ever goes up."""

    type = MetricType.COUNTER

    def reset(self) -> None:
        self.hash_map = {}
        if not self.label_names:
            self.hash_map[EMPTY_KEY] = Sample(0)

    def inc(self, value: Optional[float] = None) -> None:
        """Increment the unlabelled series by ``value`` (default 1)."""
        self._inc({}, EMPTY_KEY, value)

    def inc_with_labels(self, labels: LabelSet, value: Optional[float] = None) -> None:
        """Increment the series identified by ``labels``."""
        labels = self._check_labels(labels)
        self._inc(labels, label_key(labels), value)

    def labels(self, *values, **labels) -> CounterChild:
        return CounterChild(self, self._resolve(values, labels))

    def _inc(self, labels: LabelSet, key: LabelKey, value: Optional[float]) -> None:
        value = _check_increment(value)
        sample = self.hash_map.get(key)
        if sample is None:
            self.hash_map[key] = Sample(value, dict(labels))
        else:
            sample.value += value

    def _samples(self) -> List[Sample]:
        return list(self.hash_map.values())
