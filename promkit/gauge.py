"""Gauge metric."""
import time
from numbers import Real
from typing import Callable, List

from promkit.errors import InvalidValueError
from promkit.labels import EMPTY_KEY, LabelKey, LabelSet, label_key
from promkit.metric import Metric
from promkit.series import Sample
from promkit.snapshot import MetricType


def _check_value(value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidValueError(f"Value is not a valid number: {value!r}")
    return value


class GaugeChild:
    """Gauge bound to one label set."""

    def __init__(self, gauge: "Gauge", labels: LabelSet):
        self._gauge = gauge
        self._labels = labels
        self._key = label_key(labels)

    def set(self, value: float) -> None:
        self._gauge._set(self._labels, self._key, value)

    def inc(self, value: float = 1) -> None:
        self._gauge._add(self._labels, self._key, value)

    def dec(self, value: float = 1) -> None:
        self._gauge._add(self._labels, self._key, -_check_value(value))

    def set_to_current_time(self) -> None:
        self._gauge._set(self._labels, self._key, time.time())

    def start_timer(self) -> Callable[[], float]:
        return self._gauge._timer(self._labels, self._key)


class Gauge(Metric):
    """A value that can go up and down."""

    type = MetricType.GAUGE

    def reset(self) -> None:
        self.hash_map = {}
        if not self.label_names:
            self.hash_map[EMPTY_KEY] = Sample(0)

    def set(self, value: float) -> None:
        self._set({}, EMPTY_KEY, value)

    def set_with_labels(self, labels: LabelSet, value: float) -> None:
        labels = self._check_labels(labels)
        self._set(labels, label_key(labels), value)

    def inc(self, value: float = 1) -> None:
        self._add({}, EMPTY_KEY, value)

    def inc_with_labels(self, labels: LabelSet, value: float = 1) -> None:
        labels = self._check_labels(labels)
        self._add(labels, label_key(labels), value)

    def dec(self, value: float = 1) -> None:
        self._add({}, EMPTY_KEY, -_check_value(value))

    def dec_with_labels(self, labels: LabelSet, value: float = 1) -> None:
        labels = self._check_labels(labels)
        self._add(labels, label_key(labels), -_check_value(value))

    def set_to_current_time(self) -> None:
        """Set the gauge to the current unix time in seconds."""
        self._set({}, EMPTY_KEY, time.time())

    def start_timer(self) -> Callable[[], float]:
        """
        Start a timer; calling the returned function sets the gauge to the
        elapsed seconds and returns them.
        """
        return self._timer({}, EMPTY_KEY)

    def labels(self, *values, **labels) -> GaugeChild:
        return GaugeChild(self, self._resolve(values, labels))

    def _set(self, labels: LabelSet, key: LabelKey, value: float) -> None:
        value = _check_value(value)
        sample = self.hash_map.get(key)
        if sample is None:
            self.hash_map[key] = Sample(value, dict(labels))
        else:
            sample.value = value

    def _add(self, labels: LabelSet, key: LabelKey, value: float) -> None:
        value = _check_value(value)
        sample = self.hash_map.get(key)
        if sample is None:
            self.hash_map[key] = Sample(value, dict(labels))
        else:
            sample.value += value

    def _timer(self, labels: LabelSet, key: LabelKey) -> Callable[[], float]:
        start = time.perf_counter()

        def end() -> float:
            elapsed = time.perf_counter() - start
            self._set(labels, key, elapsed)
            return elapsed

        return end

    def _samples(self) -> List[Sample]:
        return list(self.hash_map.values())
