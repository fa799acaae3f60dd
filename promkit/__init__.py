"""In-process metrics with Prometheus text exposition and cross-process aggregation."""
from promkit.aggregators import aggregators
from promkit.buckets import exponential_buckets, linear_buckets
from promkit.cluster import AggregatorRegistry
from promkit.counter import Counter
from promkit.gauge import Gauge
from promkit.histogram import Histogram
from promkit.registry import Registry, global_registry
from promkit.snapshot import Aggregator
from promkit.summary import Summary
from promkit.validation import validate_metric_name

content_type = global_registry.content_type

__all__ = [
    "Aggregator",
    "AggregatorRegistry",
    "Counter",
    "Gauge",
    "Histogram",
    "Registry",
    "Summary",
    "aggregators",
    "content_type",
    "exponential_buckets",
    "global_registry",
    "linear_buckets",
    "validate_metric_name",
]
