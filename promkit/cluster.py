"""Merge metric snapshots collected from several worker processes."""
import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Union

from pydantic import ValidationError

from promkit.aggregators import aggregate
from promkit.registry import Registry
from promkit.snapshot import Aggregator, MetricSnapshot

logger = logging.getLogger(__name__)

WorkerSnapshot = Iterable[Union[Mapping[str, Any], MetricSnapshot]]


class AggregatedMetric:
    """Read-only metric holding an already merged snapshot."""

    def __init__(self, snapshot: MetricSnapshot):
        self.name = snapshot.name
        self.help = snapshot.help
        self.type = snapshot.type
        self.aggregator = Aggregator(snapshot.aggregator)
        self._snapshot = snapshot

    async def get(self) -> MetricSnapshot:
        return self._snapshot.model_copy(deep=True)

    def reset(self) -> None:
        self._snapshot = self._snapshot.model_copy(update={"values": []})


def _parse(entry: Union[Mapping[str, Any], MetricSnapshot]) -> MetricSnapshot:
    if isinstance(entry, MetricSnapshot):
        return entry
    return MetricSnapshot.model_validate(entry)


class AggregatorRegistry(Registry):
    """Registry built from the combined metrics of a fleet of workers."""

    @classmethod
    def aggregate(cls, workers: Iterable[WorkerSnapshot]) -> "AggregatorRegistry":
        """
        Merge per-worker metric lists into one registry.

        Args:
            workers: One list per worker, as returned by ``get_metrics_as_json()``

        Returns:
            A registry with one metric per name seen on any worker

        A worker snapshot that is not a list of metrics, or a malformed metric
        entry, is skipped with a warning; a type or aggregator that disagrees
        with the first worker reporting the metric is logged and the first
        declaration wins.
        """
        by_name: Dict[str, List[MetricSnapshot]] = defaultdict(list)

        for worker_index, metrics in enumerate(workers):
            if isinstance(metrics, (str, bytes, Mapping)) or not isinstance(metrics, Iterable):
                logger.warning(
                    f"Skipping snapshot from worker {worker_index}: expected a list of metrics, "
                    f"got {type(metrics).__name__}"
                )
                continue

            for entry in metrics:
                try:
                    snapshot = _parse(entry)
                except ValidationError as e:
                    logger.warning(f"Skipping malformed metric from worker {worker_index}: {e}")
                    continue

                group = by_name[snapshot.name]
                if group:
                    first = group[0]
                    if snapshot.type != first.type or snapshot.aggregator != first.aggregator:
                        logger.warning(
                            f"Worker {worker_index} reports {snapshot.name} as "
                            f"{snapshot.type}/{snapshot.aggregator}, using "
                            f"{first.type}/{first.aggregator}"
                        )
                group.append(snapshot)

        registry = cls()
        for name, snapshots in by_name.items():
            merged = aggregate(snapshots, Aggregator(snapshots[0].aggregator))
            registry.register_metric(AggregatedMetric(merged))

        logger.debug(f"Aggregated {len(by_name)} metrics from worker snapshots")
        return registry
