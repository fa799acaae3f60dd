"""Reduction policies used when merging the same metric from several processes."""
import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from promkit.labels import LabelKey, label_key
from promkit.snapshot import Aggregator, MetricSnapshot, SampleSnapshot

logger = logging.getLogger(__name__)

Reducer = Callable[[List[float]], float]

REDUCERS: Dict[Aggregator, Optional[Reducer]] = {
    Aggregator.OMIT: None,
    Aggregator.SUM: lambda values: float(np.sum(values)),
    Aggregator.FIRST: lambda values: values[0],
    Aggregator.MIN: lambda values: float(np.min(values)),
    Aggregator.MAX: lambda values: float(np.max(values)),
    Aggregator.AVERAGE: lambda values: float(np.mean(values)),
}


def _group_samples(
    metrics: Sequence[MetricSnapshot],
) -> Dict[Tuple[str, LabelKey], List[SampleSnapshot]]:
    """Group samples by (sample name, label key), keeping first-seen order."""
    groups: Dict[Tuple[str, LabelKey], List[SampleSnapshot]] = defaultdict(list)
    for metric in metrics:
        for sample in metric.values:
            groups[(sample.metric_name or "", label_key(sample.labels))].append(sample)
    return groups


def aggregate(metrics: Sequence[MetricSnapshot], aggregator: Aggregator) -> MetricSnapshot:
    """
    Merge snapshots of one metric taken in different processes.

    The first snapshot provides help, type and aggregator. Histogram buckets,
    summary quantiles and their _sum/_count samples are separate groups, so
    each is reduced with the same rule. ``omit`` keeps every process's
    samples as they are.
    """
    first = metrics[0]
    reducer = REDUCERS[Aggregator(aggregator)]

    if reducer is None:
        values = [sample.model_copy(deep=True) for metric in metrics for sample in metric.values]
        collisions = [key for key, samples in _group_samples(metrics).items() if len(samples) > 1]
        if collisions:
            logger.warning(
                f"{first.name} uses the omit aggregator but {len(collisions)} series are reported "
                f"by more than one worker; add a per-worker default label to keep them apart"
            )
    else:
        values = []
        for samples in _group_samples(metrics).values():
            values.append(
                SampleSnapshot(
                    value=reducer([s.value for s in samples]),
                    labels=dict(samples[0].labels),
                    metric_name=samples[0].metric_name,
                )
            )

    return MetricSnapshot(
        name=first.name,
        help=first.help,
        type=first.type,
        aggregator=aggregator,
        values=values,
    )


def _aggregator_fn(aggregator: Aggregator) -> Callable[[Sequence[MetricSnapshot]], MetricSnapshot]:
    return lambda metrics: aggregate(metrics, aggregator)


aggregators: Dict[str, Callable[[Sequence[MetricSnapshot]], MetricSnapshot]] = {
    a.value: _aggregator_fn(a) for a in Aggregator
}
