"""Registry of named metrics and text exposition of their current values."""
import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from promkit.errors import DuplicateMetricError
from promkit.exposition import CONTENT_TYPE, format_metric, with_default_labels
from promkit.snapshot import MetricSnapshot

if TYPE_CHECKING:
    from promkit.metric import Metric

logger = logging.getLogger(__name__)


class Registry:
    """Container for all registered metrics."""

    def __init__(self):
        self._metrics: Dict[str, "Metric"] = {}
        self._default_labels: Dict[str, Union[str, int, float]] = {}

    @property
    def content_type(self) -> str:
        """Content-Type header value for the rendered exposition text."""
        return CONTENT_TYPE

    @property
    def default_labels(self) -> Dict[str, Union[str, int, float]]:
        return dict(self._default_labels)

    def get_metrics_as_array(self) -> List["Metric"]:
        return list(self._metrics.values())

    def register_metric(self, metric: "Metric") -> None:
        """Register a metric; re-registering the same object is a no-op."""
        existing = self._metrics.get(metric.name)
        if existing is not None and existing is not metric:
            raise DuplicateMetricError(
                f"A metric with the name {metric.name} has already been registered."
            )

        self._metrics[metric.name] = metric
        logger.debug(f"Registered metric {metric.name}")

    def remove_single_metric(self, name: str) -> None:
        self._metrics.pop(name, None)
        logger.debug(f"Removed metric {name}")

    def get_single_metric(self, name: str) -> Optional["Metric"]:
        return self._metrics.get(name)

    def clear(self) -> None:
        """Remove all metrics and default labels."""
        self._metrics = {}
        self._default_labels = {}

    def set_default_labels(self, labels: Mapping[str, Union[str, int, float]]) -> None:
        """
        Set static labels added to every sample emitted by this registry.

        Replaces any previously set default labels.
        """
        self._default_labels = dict(labels)

    def reset_metrics(self) -> None:
        for metric in self._metrics.values():
            metric.reset()

    async def get_metric_as_prometheus_string(self, metric: "Metric") -> str:
        snapshot = await metric.get()
        return format_metric(snapshot, self._default_labels)

    async def get_single_metric_as_string(self, name: str) -> str:
        metric = self._metrics.get(name)
        if metric is None:
            raise KeyError(f"No metric named {name} is registered")
        return await self.get_metric_as_prometheus_string(metric)

    async def metrics(self) -> str:
        """
        Render every registered metric in the text exposition format.

        Collection runs concurrently; any failing collect callback fails
        the whole call.
        """
        blocks = await asyncio.gather(
            *(self.get_metric_as_prometheus_string(m) for m in self.get_metrics_as_array())
        )
        return "\n\n".join(block.rstrip() for block in blocks) + "\n"

    async def get_metrics_as_json(self) -> List[Dict[str, Any]]:
        """
        Snapshot every registered metric in the JSON wire shape.

        Default labels are merged into copies of each sample's labels.
        """
        snapshots: List[MetricSnapshot] = await asyncio.gather(
            *(m.get() for m in self.get_metrics_as_array())
        )

        result = []
        for snapshot in snapshots:
            if self._default_labels:
                for sample in snapshot.values:
                    sample.labels = with_default_labels(sample.labels, self._default_labels)
            result.append(snapshot.to_json())

        return result

    @staticmethod
    def merge(registries: List["Registry"]) -> "Registry":
        """
        Build a registry holding the metric objects of all ``registries``.

        Raises DuplicateMetricError when two registries hold different
        metrics under the same name.
        """
        merged = Registry()
        for registry in registries:
            for metric in registry.get_metrics_as_array():
                merged.register_metric(metric)
        return merged


# Process-wide registry used when a metric is created without ``registers``.
# It lives for the whole process; use clear() to empty it.
global_registry = Registry()
