"""Label key encoding and label resolution."""
from typing import Dict, Mapping, NewType, Sequence, Tuple, Union

from promkit.errors import LabelCountError, LabelValueError
from promkit.exposition import format_value

LabelValue = Union[str, int, float]
LabelSet = Dict[str, LabelValue]

# Canonical identity of a label set, used as the storage slot key.
LabelKey = NewType("LabelKey", str)

EMPTY_KEY = LabelKey("")


def _value_str(value: LabelValue) -> str:
    if isinstance(value, str):
        return value
    return format_value(value)


def label_key(labels: Mapping[str, LabelValue]) -> LabelKey:
    """
    Encode a label set into its storage key.

    Keys are sorted so that equivalent label sets map to the same key
    regardless of insertion order. This is an identity, not a hash: it is
    not meant to withstand adversarial label values.
    """
    if not labels:
        return EMPTY_KEY
    return LabelKey(",".join(f"{k}:{_value_str(labels[k])}" for k in sorted(labels)))


def check_label_values(labels: Mapping[str, object]) -> None:
    """Reject label values that are neither strings nor numbers."""
    for name, value in labels.items():
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise LabelValueError(
                f'Label "{name}" must be a string or a number, got {type(value).__name__}'
            )


def resolve_labels(
    label_names: Sequence[str],
    args: Tuple[object, ...],
    kwargs: Mapping[str, object],
) -> LabelSet:
    """
    Turn the arguments of ``labels()``/``remove()`` into a label set.

    Accepts a single mapping, keyword arguments, or one positional value per
    declared label name (in declaration order).
    """
    if len(args) == 1 and isinstance(args[0], Mapping) and not kwargs:
        labels = dict(args[0])
    elif kwargs and not args:
        labels = dict(kwargs)
    elif kwargs:
        raise LabelCountError("Cannot mix positional and keyword label values")
    else:
        if len(args) != len(label_names):
            raise LabelCountError(
                f"Invalid number of arguments: expected {len(label_names)}, got {len(args)}"
            )
        labels = dict(zip(label_names, args))

    check_label_values(labels)
    return labels
