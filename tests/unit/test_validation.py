"""Validation tests."""

from datetime import datetime, timezone

import pytest
from hypothesis import given, strategies as st
from returns.result import Failure, Success

from core import (
    ScreenRequest,
    JSONParseError,
    decode_json,
    safe_json_dumps,
    validate_json_size,
    validate_json_depth,
    validate_template,
)


def test_screen_request_valid():
    """Test valid screen request."""
    req = ScreenRequest(screen_id="technician-dashboard", user_id="u1", locale="en-US")
    assert req.screen_id == "technician-dashboard"
    assert req.user_id == "u1"
    assert req.locale == "en-US"


def test_screen_request_rejects_bad_ids():
    """Screen ids are path-safe identifiers."""
    for bad in ["", "../etc/passwd", "a/b", "a..b", "x" * 200, "with space"]:
        with pytest.raises(Exception):
            ScreenRequest(screen_id=bad)


def test_screen_request_blank_values_absent():
    """Empty query values count as absent."""
    req = ScreenRequest(screen_id="home", user_id="", route_id="  ", locale="")
    assert req.user_id is None
    assert req.route_id is None
    assert req.locale is None


def test_screen_request_service_date():
    """RFC3339 dates parse, garbage is ignored."""
    req = ScreenRequest(screen_id="home", service_date="2024-03-01T08:00:00Z")
    assert req.service_date == datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)

    ignored = ScreenRequest(screen_id="home", service_date="next tuesday")
    assert ignored.service_date is None


def test_validate_json_size():
    """Test JSON size validation."""
    validate_json_size('{"test": "data"}', 1000)

    with pytest.raises(JSONParseError):
        validate_json_size("x" * 1_000_000, 1000)


def test_validate_json_depth():
    """Test JSON depth validation."""
    validate_json_depth({"a": {"b": {"c": 1}}}, max_depth=5)

    deep = {"level": 1}
    current = deep
    for i in range(25):
        current["nested"] = {"level": i + 2}
        current = current["nested"]

    with pytest.raises(JSONParseError):
        validate_json_depth(deep, max_depth=20)


def test_validate_template_result():
    """Template validation reports failures as values."""
    good = {"id": "home", "components": []}
    assert isinstance(validate_template(good, safe_json_dumps(good)), Success)

    missing = {"id": "home"}
    result = validate_template(missing, safe_json_dumps(missing))
    assert isinstance(result, Failure)
    assert "components" in result.failure().message

    not_object = validate_template([1, 2], "[1,2]")
    assert isinstance(not_object, Failure)

    too_big = validate_template(good, safe_json_dumps(good), max_size=5)
    assert isinstance(too_big, Failure)


def test_validate_template_single_root():
    """The single-root form passes validation."""
    template = {"version": 5, "component": {"id": "root", "type": "vstack"}}
    assert isinstance(validate_template(template, safe_json_dumps(template)), Success)


def test_decode_json_errors():
    """Invalid JSON raises JSONParseError."""
    assert decode_json('{"a": [1, 2]}') == {"a": [1, 2]}
    with pytest.raises(JSONParseError):
        decode_json("{not json")


@given(st.dictionaries(st.text(max_size=10), st.integers(min_value=-(2**53), max_value=2**53)))
def test_safe_json_dumps_sorted(data):
    """Property test: encoding is canonical and round-trips."""
    encoded = safe_json_dumps(data)
    assert decode_json(encoded) == data
    assert safe_json_dumps(dict(reversed(list(data.items())))) == encoded
