"""Tests for label key encoding, label resolution and name validation."""
import itertools

import pytest

from promkit.errors import InvalidLabelError, LabelCountError, LabelValueError
from promkit.labels import label_key, resolve_labels
from promkit.validation import validate_label, validate_label_name, validate_metric_name


def test_label_key_is_order_independent():
    """Every permutation of the same pairs encodes to the same key."""
    pairs = [("method", "GET"), ("status", 200), ("path", "/api")]
    keys = {label_key(dict(p)) for p in itertools.permutations(pairs)}
    assert keys == {"method:GET,path:/api,status:200"}


def test_label_key_empty():
    assert label_key({}) == ""


def test_label_key_distinguishes_values():
    assert label_key({"a": "1"}) != label_key({"a": "2"})
    assert label_key({"a": "1"}) != label_key({"b": "1"})


def test_label_key_integral_float_matches_int():
    assert label_key({"le": 1.0}) == label_key({"le": 1}) == "le:1"


def test_resolve_positional_labels():
    labels = resolve_labels(["method", "status"], ("GET", 200), {})
    assert labels == {"method": "GET", "status": 200}
    assert list(labels) == ["method", "status"]


def test_resolve_mapping_and_keyword_labels():
    assert resolve_labels(["method"], ({"method": "GET"},), {}) == {"method": "GET"}
    assert resolve_labels(["method"], (), {"method": "POST"}) == {"method": "POST"}


def test_resolve_wrong_argument_count():
    with pytest.raises(LabelCountError):
        resolve_labels(["method", "status"], ("GET",), {})


def test_resolve_rejects_non_scalar_values():
    with pytest.raises(LabelValueError):
        resolve_labels(["method"], (["GET"],), {})
    with pytest.raises(LabelValueError):
        resolve_labels(["flag"], (), {"flag": True})


def test_validate_metric_name():
    for name in ["up", "http_requests_total", "ns:sub_metric", "_private", "a1"]:
        assert validate_metric_name(name), name
    for name in ["", "1abc", "has-dash", "has space", "ümlaut"]:
        assert not validate_metric_name(name), name


def test_validate_label_name():
    assert validate_label_name(["method", "_x", "a1"])
    assert validate_label_name([])
    assert not validate_label_name(["ok", "not:ok"])
    assert not validate_label_name(["9lives"])


def test_validate_label_rejects_unknown_names():
    validate_label(["method"], {"method": "GET"})
    with pytest.raises(InvalidLabelError):
        validate_label(["method"], {"path": "/"})
