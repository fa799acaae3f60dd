"""JSON snapshot models exchanged between worker registries and the aggregator."""
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MetricType(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"


class Aggregator(str, Enum):
    """Reduction applied to the same series reported by several processes."""
    OMIT = "omit"
    SUM = "sum"
    FIRST = "first"
    MIN = "min"
    MAX = "max"
    AVERAGE = "average"


class SampleSnapshot(BaseModel):
    """One rendered sample: ``metricName{labels} value``."""
    model_config = ConfigDict(populate_by_name=True)

    value: float
    labels: Dict[str, Union[str, int, float]] = Field(default_factory=dict)
    metric_name: Optional[str] = Field(default=None, alias="metricName")


class MetricSnapshot(BaseModel):
    """Point-in-time view of one metric, as returned by ``Metric.get()``."""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    name: str
    # minimal producers may omit help and type
    help: str = ""
    type: MetricType = MetricType.GAUGE
    aggregator: Aggregator = Aggregator.SUM
    values: List[SampleSnapshot] = Field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        """Dump to the wire shape (``metricName`` key, no null fields)."""
        return self.model_dump(by_alias=True, exclude_none=True)
