"""Text exposition format rendering."""
import math
import re
from typing import Dict, Mapping, Union

from promkit.snapshot import MetricSnapshot

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

_UNESCAPED_BACKSLASH = re.compile(r"\\(?!n)")


def escape_string(value: str) -> str:
    """Escape newlines and lone backslashes in names and help text."""
    return _UNESCAPED_BACKSLASH.sub(r"\\\\", value.replace("\n", "\\n"))


def escape_label_value(value: Union[str, int, float]) -> str:
    if not isinstance(value, str):
        return format_value(value)
    return escape_string(value).replace('"', '\\"')


def format_value(value: Union[int, float]) -> str:
    """
    Render a sample value.

    NaN and infinities use the exposition spellings; finite numbers render
    in their shortest decimal form with integral floats printed without a
    trailing ``.0``.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)

    value = float(value)
    if math.isnan(value):
        return "Nan"
    if math.isinf(value):
        return "-Inf" if value < 0 else "+Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def with_default_labels(
    labels: Mapping[str, Union[str, int, float]],
    default_labels: Mapping[str, Union[str, int, float]],
) -> Dict[str, Union[str, int, float]]:
    """Return a copy of ``labels`` with defaults appended for names it lacks."""
    merged = dict(labels)
    for name, value in default_labels.items():
        if name not in merged:
            merged[name] = value
    return merged


def format_metric(
    snapshot: MetricSnapshot,
    default_labels: Mapping[str, Union[str, int, float]] = None,
) -> str:
    """
    Render one metric as a HELP/TYPE block followed by its samples.

    Args:
        snapshot: Metric snapshot returned by ``Metric.get()``
        default_labels: Labels injected into samples that do not set them

    Returns:
        The block with surrounding whitespace stripped
    """
    name = escape_string(snapshot.name)
    lines = [
        f"# HELP {name} {escape_string(snapshot.help)}",
        f"# TYPE {name} {snapshot.type}",
    ]

    for sample in snapshot.values:
        labels = sample.labels
        if default_labels:
            labels = with_default_labels(labels, default_labels)

        sample_name = sample.metric_name or snapshot.name
        if labels:
            rendered = ",".join(f'{k}="{escape_label_value(v)}"' for k, v in labels.items())
            sample_name = f"{sample_name}{{{rendered}}}"

        lines.append(f"{sample_name} {format_value(sample.value)}")

    return "\n".join(lines).strip()
