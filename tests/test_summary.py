"""Tests for summaries."""
import asyncio
import math
import time
from types import SimpleNamespace

import pytest

from promkit.errors import MetricConfigurationError
from promkit.registry import Registry
from promkit.summary import Summary


def quantiles(summary):
    values = asyncio.run(summary.get()).values
    return {v.labels["quantile"]: v.value for v in values if v.metric_name is None}


def test_quantiles_sum_and_count():
    registry = Registry()
    summary = Summary("payload_bytes", "Payload size", percentiles=[0.5, 0.9], registers=[registry])
    for value in range(1, 11):
        summary.observe(value)

    q = quantiles(summary)
    assert q[0.5] == pytest.approx(5.5)
    assert q[0.9] == pytest.approx(9.1)

    text = asyncio.run(registry.metrics())
    assert "payload_bytes_sum 55" in text
    assert "payload_bytes_count 10" in text


def test_empty_summary_renders_nan_quantiles():
    registry = Registry()
    Summary("payload_bytes", "Payload size", percentiles=[0.5], registers=[registry])

    text = asyncio.run(registry.metrics())
    assert 'payload_bytes{quantile="0.5"} Nan' in text
    assert "payload_bytes_count 0" in text


def test_labelled_summary():
    summary = Summary("payload_bytes", "Payload size", ["route"], percentiles=[0.5], registers=[])
    summary.labels("/a").observe(3)
    summary.observe_with_labels({"route": "/b"}, 8)

    values = asyncio.run(summary.get()).values
    medians = {v.labels["route"]: v.value for v in values if "quantile" in v.labels}
    assert medians == {"/a": 3, "/b": 8}


def test_max_samples_bounds_window():
    summary = Summary("payload_bytes", "Payload size", percentiles=[0.5], max_samples=2, registers=[])
    for value in [100, 1, 3]:
        summary.observe(value)

    assert quantiles(summary)[0.5] == pytest.approx(2)
    totals = {v.metric_name: v.value for v in asyncio.run(summary.get()).values if v.metric_name}
    assert totals == {"payload_bytes_sum": 104, "payload_bytes_count": 3}


def test_max_age_expires_old_observations(monkeypatch):
    clock = [100.0]
    fake_time = SimpleNamespace(monotonic=lambda: clock[0], perf_counter=time.perf_counter)
    monkeypatch.setattr("promkit.summary.time", fake_time)
    summary = Summary("payload_bytes", "Payload size", percentiles=[0.5], max_age_seconds=60, registers=[])

    summary.observe(10)
    clock[0] = 200.0
    summary.observe(20)
    assert quantiles(summary)[0.5] == 20

    clock[0] = 300.0
    assert math.isnan(quantiles(summary)[0.5])

    # rendering leaves the stored window alone
    assert len(summary.hash_map[""].window) == 1


def test_invalid_summary_configuration():
    with pytest.raises(MetricConfigurationError):
        Summary("s", "S", percentiles=[1.5], registers=[])
    with pytest.raises(MetricConfigurationError):
        Summary("s", "S", ["quantile"], registers=[])
    with pytest.raises(MetricConfigurationError):
        Summary("s", "S", max_age_seconds=0, registers=[])
