"""Configuration models using Pydantic for validation."""
import os
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from promkit.counter import Counter
from promkit.gauge import Gauge
from promkit.histogram import Histogram
from promkit.metric import Metric
from promkit.registry import Registry
from promkit.snapshot import Aggregator, MetricType
from promkit.summary import Summary

METRIC_CLASSES = {
    MetricType.COUNTER: Counter,
    MetricType.GAUGE: Gauge,
    MetricType.HISTOGRAM: Histogram,
    MetricType.SUMMARY: Summary,
}


class MetricDefinition(BaseModel):
    """Configuration for a single metric."""
    name: str
    type: MetricType
    help: str
    label_names: List[str] = Field(default_factory=list)
    aggregator: Aggregator = Aggregator.SUM

    # Histogram
    buckets: Optional[List[float]] = None

    # Summary
    percentiles: Optional[List[float]] = None
    max_age_seconds: Optional[float] = None


class RegistryConfig(BaseModel):
    """Registry-wide settings."""
    default_labels: Dict[str, Union[str, int, float]] = Field(default_factory=dict)


class GlobalConfig(BaseModel):
    """Global configuration settings."""
    log_level: str = "INFO"


class Config(BaseModel):
    """Root configuration model."""
    model_config = ConfigDict(populate_by_name=True)

    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    metrics: List[MetricDefinition] = Field(default_factory=list)

    @field_validator('metrics')
    @classmethod
    def validate_metrics(cls, v):
        """Validate metric configurations."""
        if not v:
            raise ValueError("At least one metric must be defined")

        names = [m.name for m in v]
        if len(names) != len(set(names)):
            raise ValueError("Metric names must be unique")

        return v


def load_config(config_path: str) -> Config:
    """Load and validate configuration from YAML file."""
    import yaml

    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}

    # Apply environment variable overrides
    if env_log_level := os.getenv('LOG_LEVEL'):
        raw_config.setdefault('global', {})['log_level'] = env_log_level

    try:
        return Config(**raw_config)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")


def create_metric(definition: MetricDefinition, registry: Registry) -> Metric:
    """Instantiate one configured metric into ``registry``."""
    kwargs = {}
    if definition.type == MetricType.HISTOGRAM and definition.buckets is not None:
        kwargs["buckets"] = definition.buckets
    if definition.type == MetricType.SUMMARY:
        if definition.percentiles is not None:
            kwargs["percentiles"] = definition.percentiles
        kwargs["max_age_seconds"] = definition.max_age_seconds

    metric_class = METRIC_CLASSES[definition.type]
    return metric_class(
        definition.name,
        definition.help,
        definition.label_names,
        registers=[registry],
        aggregator=definition.aggregator,
        **kwargs
    )


def build_registry(config: Config) -> Registry:
    """Create a registry holding every metric defined in ``config``."""
    registry = Registry()
    registry.set_default_labels(config.registry.default_labels)
    for definition in config.metrics:
        create_metric(definition, registry)
    return registry
