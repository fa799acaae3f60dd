"""Exceptions raised by metric construction, mutation and registration."""


class MetricConfigurationError(ValueError):
    """Invalid metric definition: name, help, label names, buckets or collect."""


class DuplicateMetricError(MetricConfigurationError):
    """A different metric is already registered under the same name."""


class InvalidLabelError(ValueError):
    """A label name that is not part of the metric's declared label set."""


class LabelCountError(ValueError):
    """Positional label values do not match the number of label names."""


class LabelValueError(TypeError):
    """A label value that is not a string or a number."""


class InvalidValueError(TypeError):
    """A metric value that is not a finite number."""


class CounterDecreaseError(ValueError):
    """Raised when a counter is incremented by a negative amount."""

    def __init__(self, value: float):
        super().__init__(f"It is not possible to decrease a counter (got {value})")
        self.value = value
