"""Name validation for metrics and labels."""
import re
from typing import Iterable, Mapping, Sequence

from promkit.errors import InvalidLabelError

# https://prometheus.io/docs/concepts/data_model/#metric-names-and-labels
METRIC_NAME_PATTERN = re.compile(r'^[a-zA-Z_:][a-zA-Z0-9_:]*$')
LABEL_NAME_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


def validate_metric_name(name: str) -> bool:
    """Check a metric name against [a-zA-Z_:][a-zA-Z0-9_:]*"""
    return isinstance(name, str) and METRIC_NAME_PATTERN.fullmatch(name) is not None


def validate_label_name(names: Iterable[str]) -> bool:
    """
    Validate label names are Prometheus-safe.

    Label names must match [a-zA-Z_][a-zA-Z0-9_]*
    """
    for name in names or []:
        if not isinstance(name, str) or not LABEL_NAME_PATTERN.fullmatch(name):
            return False

    return True


def validate_label(label_names: Sequence[str], labels: Mapping[str, object]) -> None:
    """Ensure every key in ``labels`` was declared when the metric was created."""
    for label in labels:
        if label not in label_names:
            raise InvalidLabelError(
                f'Added label "{label}" is not included in initial labelset: {list(label_names)}'
            )
