"""Shared construction, label handling and snapshot behaviour for all metric kinds."""
import inspect
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from promkit.errors import MetricConfigurationError
from promkit.labels import LabelKey, LabelSet, label_key, resolve_labels
from promkit.series import Sample
from promkit.snapshot import Aggregator, MetricSnapshot, MetricType, SampleSnapshot
from promkit.validation import validate_label, validate_label_name, validate_metric_name

if TYPE_CHECKING:
    from promkit.registry import Registry

CollectFunction = Callable[["Metric"], Any]


class MetricConfig(BaseModel):
    """Validated construction arguments common to every metric kind."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    help: str
    label_names: List[str] = []
    aggregator: Aggregator = Aggregator.SUM
    collect: Optional[Callable[..., Any]] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v:
            raise ValueError("Missing mandatory name parameter")
        if not validate_metric_name(v):
            raise ValueError(f"Invalid metric name: {v!r}")
        return v

    @field_validator('help')
    @classmethod
    def validate_help(cls, v):
        if not v:
            raise ValueError("Missing mandatory help parameter")
        return v

    @field_validator('label_names')
    @classmethod
    def validate_label_names(cls, v):
        if not validate_label_name(v):
            raise ValueError(f"Invalid label name in {v}")
        if len(v) != len(set(v)):
            raise ValueError(f"Duplicate label name in {v}")
        return v


class Metric(ABC):
    """
    Base class for counters, gauges, histograms and summaries.

    Every metric keeps a mapping from label key to its stored observation
    and registers itself into each registry in ``registers`` (the global
    registry when omitted, none when an empty list is given).
    """

    type: MetricType
    reserved_labels: Sequence[str] = ()

    def __init__(
        self,
        name: str,
        help: str,
        label_names: Sequence[str] = (),
        registers: Optional[List["Registry"]] = None,
        aggregator: Aggregator = Aggregator.SUM,
        collect: Optional[CollectFunction] = None,
    ):
        if isinstance(label_names, str):
            raise MetricConfigurationError(
                f"label_names for metric {name!r} must be a sequence of names, not a string"
            )

        try:
            config = MetricConfig(
                name=name,
                help=help,
                label_names=list(label_names or []),
                aggregator=aggregator,
                collect=collect,
            )
        except ValidationError as e:
            raise MetricConfigurationError(f"Invalid configuration for metric {name!r}: {e}") from e

        for label in config.label_names:
            if label in self.reserved_labels:
                raise MetricConfigurationError(f"{label} is a reserved label keyword")

        self.name = config.name
        self.help = config.help
        self.label_names = tuple(config.label_names)
        self.aggregator = Aggregator(config.aggregator)
        self.collect = config.collect

        if registers is None:
            from promkit.registry import global_registry
            registers = [global_registry]
        self.registers = list(registers)

        self.hash_map: Dict[LabelKey, Any] = {}
        self.reset()

        for registry in self.registers:
            registry.register_metric(self)

    @abstractmethod
    def reset(self) -> None:
        """Drop all stored observations, re-seeding the zero value where applicable."""

    @abstractmethod
    def _samples(self) -> List[Sample]:
        """Flatten stored observations into renderable samples."""

    def _resolve(self, args, kwargs) -> LabelSet:
        labels = resolve_labels(self.label_names, args, kwargs)
        validate_label(self.label_names, labels)
        return labels

    def _check_labels(self, labels: LabelSet) -> LabelSet:
        labels = resolve_labels(self.label_names, (labels or {},), {})
        validate_label(self.label_names, labels)
        return labels

    def remove(self, *values, **labels) -> None:
        """Remove the series for the given label values; unknown series are ignored."""
        resolved = self._resolve(values, labels)
        self.hash_map.pop(label_key(resolved), None)

    async def get(self) -> MetricSnapshot:
        """
        Run the collect callback, if any, and snapshot every stored series.

        Errors raised by the callback propagate to the caller.
        """
        if self.collect is not None:
            result = self.collect(self)
            if inspect.isawaitable(result):
                await result

        return MetricSnapshot(
            name=self.name,
            help=self.help,
            type=self.type,
            aggregator=self.aggregator,
            values=[
                SampleSnapshot(
                    value=sample.value,
                    labels=dict(sample.labels),
                    metric_name=sample.metric_name,
                )
                for sample in self._samples()
            ],
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, labels={list(self.label_names)})"
