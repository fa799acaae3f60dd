"""Data structures for stored observations."""
from dataclasses import dataclass, field
from typing import Optional

from promkit.labels import LabelKey, LabelSet, label_key


@dataclass
class Sample:
    """A single observation slot: a value and the labels it was recorded with."""
    value: float
    labels: LabelSet = field(default_factory=dict)
    metric_name: Optional[str] = None

    def label_key(self) -> LabelKey:
        """Generate a stable key from sorted labels."""
        return label_key(self.labels)
