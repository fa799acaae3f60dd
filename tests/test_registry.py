"""Tests for the registry and the text exposition format."""
import asyncio
import math

import pytest
from prometheus_client.parser import text_string_to_metric_families

from promkit.counter import Counter
from promkit.errors import DuplicateMetricError
from promkit.gauge import Gauge
from promkit.registry import Registry


def render(registry):
    return asyncio.run(registry.metrics())


def test_duplicate_name_with_different_object_fails():
    registry = Registry()
    Counter("requests_total", "Total requests", registers=[registry])

    with pytest.raises(DuplicateMetricError):
        Counter("requests_total", "Another one", registers=[registry])


def test_registering_same_object_twice_is_noop():
    registry = Registry()
    counter = Counter("requests_total", "Total requests", registers=[registry])
    registry.register_metric(counter)

    assert registry.get_metrics_as_array() == [counter]


def test_help_escaping_and_idempotent_render():
    registry = Registry()
    Gauge("temperature", "Line one\nback\\slash", registers=[registry])

    first = render(registry)
    assert "# HELP temperature Line one\\nback\\\\slash\n" in first
    assert render(registry) == first


def test_label_value_escaping():
    registry = Registry()
    gauge = Gauge("files", "Files", ["path"], registers=[registry])
    gauge.labels('say "hi"\\dir').set(1)

    assert 'files{path="say \\"hi\\"\\\\dir"} 1' in render(registry)


def test_special_values():
    registry = Registry()
    gauge = Gauge("weird", "Weird values", ["kind"], registers=[registry])
    gauge.labels("nan").set(math.nan)
    gauge.labels("pos").set(math.inf)
    gauge.labels("neg").set(-math.inf)
    gauge.labels("frac").set(0.25)

    text = render(registry)
    assert 'weird{kind="nan"} Nan' in text
    assert 'weird{kind="pos"} +Inf' in text
    assert 'weird{kind="neg"} -Inf' in text
    assert 'weird{kind="frac"} 0.25' in text


def test_blocks_joined_by_blank_line():
    registry = Registry()
    Gauge("a", "A", registers=[registry])
    Gauge("b", "B", registers=[registry])

    assert render(registry) == (
        "# HELP a A\n# TYPE a gauge\na 0\n"
        "\n"
        "# HELP b B\n# TYPE b gauge\nb 0\n"
    )


def test_empty_registry_renders_newline():
    assert render(Registry()) == "\n"


def test_default_labels_injected_without_override():
    registry = Registry()
    Gauge("up", "Up", registers=[registry])
    counter = Counter("requests_total", "Requests", ["region", "method"], registers=[registry])
    counter.labels(region="us", method="GET").inc()

    registry.set_default_labels({"region": "eu"})
    text = render(registry)

    assert 'up{region="eu"} 0' in text
    assert 'requests_total{region="us",method="GET"} 1' in text


def test_default_labels_appended_after_own_labels():
    registry = Registry()
    counter = Counter("requests_total", "Requests", ["method"], registers=[registry])
    counter.labels("GET").inc()
    registry.set_default_labels({"host": "a", "zone": "b"})

    assert 'requests_total{method="GET",host="a",zone="b"} 1' in render(registry)


def test_set_default_labels_replaces_previous():
    registry = Registry()
    Gauge("up", "Up", registers=[registry])
    registry.set_default_labels({"region": "eu"})
    registry.set_default_labels({"zone": "z1"})

    assert 'up{zone="z1"} 0' in render(registry)


def test_json_does_not_mutate_stored_labels():
    registry = Registry()
    counter = Counter("requests_total", "Requests", ["method"], registers=[registry])
    counter.labels("GET").inc()
    registry.set_default_labels({"region": "eu"})

    metrics = asyncio.run(registry.get_metrics_as_json())

    assert metrics[0]["values"][0]["labels"] == {"method": "GET", "region": "eu"}
    assert [s.labels for s in counter.hash_map.values()] == [{"method": "GET"}]


def test_json_follows_registration_order():
    registry = Registry()
    for name in ["zeta", "alpha", "mid"]:
        Gauge(name, name, registers=[registry])

    names = [m["name"] for m in asyncio.run(registry.get_metrics_as_json())]
    assert names == ["zeta", "alpha", "mid"]


def test_single_metric_access():
    registry = Registry()
    gauge = Gauge("up", "Up", registers=[registry])
    gauge.set(1)

    assert asyncio.run(registry.get_single_metric_as_string("up")) == "# HELP up Up\n# TYPE up gauge\nup 1"
    assert registry.get_single_metric("up") is gauge
    with pytest.raises(KeyError):
        asyncio.run(registry.get_single_metric_as_string("missing"))


def test_remove_clear_and_reset():
    registry = Registry()
    gauge = Gauge("up", "Up", registers=[registry])
    Gauge("down", "Down", registers=[registry])
    gauge.set(5)

    registry.reset_metrics()
    assert 'up 0' in render(registry)

    registry.remove_single_metric("down")
    assert [m.name for m in registry.get_metrics_as_array()] == ["up"]

    registry.set_default_labels({"region": "eu"})
    registry.clear()
    assert registry.get_metrics_as_array() == []
    assert registry.default_labels == {}


def test_merge_registries():
    r1, r2 = Registry(), Registry()
    a = Gauge("a", "A", registers=[r1])
    b = Gauge("b", "B", registers=[r2])

    merged = Registry.merge([r1, r2])
    assert merged.get_metrics_as_array() == [a, b]


def test_merge_conflicting_names_fails():
    r1, r2 = Registry(), Registry()
    Gauge("a", "A", registers=[r1])
    Gauge("a", "Other A", registers=[r2])

    with pytest.raises(DuplicateMetricError):
        Registry.merge([r1, r2])


def test_merge_shared_object_is_allowed():
    r1, r2 = Registry(), Registry()
    shared = Gauge("a", "A", registers=[r1, r2])

    assert Registry.merge([r1, r2]).get_metrics_as_array() == [shared]


def test_content_type():
    assert Registry().content_type == "text/plain; version=0.0.4; charset=utf-8"


def test_output_accepted_by_reference_parser():
    """prometheus_client parses the rendered text back to the same samples."""
    registry = Registry()
    gauge = Gauge("queue_depth", "Queue depth\nper \\ worker", ["queue"], registers=[registry])
    gauge.labels('jobs "main"').set(7)
    gauge.labels("empty").set(math.nan)
    registry.set_default_labels({"region": "eu"})

    families = list(text_string_to_metric_families(render(registry)))
    assert len(families) == 1
    assert families[0].documentation == "Queue depth\nper \\ worker"

    samples = {s.labels["queue"]: s for s in families[0].samples}
    assert samples['jobs "main"'].value == 7
    assert samples['jobs "main"'].labels["region"] == "eu"
    assert math.isnan(samples["empty"].value)
