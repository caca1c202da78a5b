"""Tests for event normalization."""

import re

import pytest

from loggy.normalizer import CallShape, build_event, classify, error_fields, normalize


ISO_UTC = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def _raised(exc):
    try:
        raise exc
    except Exception as caught:
        return caught


class TestClassify:
    def test_error_first(self):
        assert classify(ValueError("x"), True) == CallShape.ERROR

    def test_sequence(self):
        assert classify([{"a": 1}], {"b": 2}) == CallShape.SEQUENCE
        assert classify(({"a": 1},)) == CallShape.SEQUENCE

    def test_flag_only_when_immediate_missing(self):
        assert classify("msg", True) == CallShape.FLAG
        assert classify("msg", True, False) == CallShape.GENERAL

    def test_general(self):
        assert classify("msg") == CallShape.GENERAL
        assert classify({"message": "m"}, {"a": 1}) == CallShape.GENERAL


class TestBuildEvent:
    def test_message_string(self):
        event = build_event({}, "hello")
        assert event["message"] == "hello"
        assert ISO_UTC.match(event["ts"])

    def test_numeric_fields_become_value(self):
        event = build_event({}, "msg", 3.14)
        assert event["value"] == 3.14
        assert event["message"] == "msg"

    def test_bool_and_string_fields_dropped(self):
        assert "value" not in build_event({}, "msg", "junk")
        assert set(build_event({}, "msg", None)) == {"ts", "message"}

    def test_layer_precedence(self):
        defaults = {"app": "default", "level": "info", "module": "core"}
        event = build_event(defaults, {"message": "m", "level": "warn"}, {"level": "debug", "module": "db"})
        # message > fields > ts > defaults
        assert event["level"] == "warn"
        assert event["module"] == "db"
        assert event["app"] == "default"

    def test_message_can_override_ts(self):
        event = build_event({"ts": "old"}, {"ts": "2020-01-01T00:00:00.000Z"})
        assert event["ts"] == "2020-01-01T00:00:00.000Z"

    def test_defaults_ts_is_replaced(self):
        event = build_event({"ts": "old"}, "m")
        assert event["ts"] != "old"


class TestErrorShape:
    def test_error_fields(self):
        exc = _raised(KeyError("missing"))
        fields = error_fields(exc)
        assert fields["level"] == "error"
        assert fields["code"] == "KeyError"
        assert fields["message"] == "'missing'"
        assert "Traceback" in fields["details"]

    def test_unraised_error_has_details(self):
        fields = error_fields(RuntimeError("boom"))
        assert fields["details"].strip() == "RuntimeError: boom"

    def test_normalize_error(self):
        [(event, immediate)] = list(normalize({}, RuntimeError("Y")))
        assert event["level"] == "error"
        assert event["code"] == "RuntimeError"
        assert event["message"] == "Y"
        assert immediate is False

    def test_fields_override_synthesized(self):
        [(event, _)] = list(normalize({}, RuntimeError("Y"), {"code": "override", "level": "fatal"}))
        assert event["code"] == "override"
        assert event["level"] == "fatal"

    def test_immediate_kept(self):
        [(_, immediate)] = list(normalize({}, RuntimeError("Y"), {}, True))
        assert immediate is True

    def test_flag_in_fields_slot(self):
        [(event, immediate)] = list(normalize({}, RuntimeError("Y"), True))
        assert immediate is True
        assert event["code"] == "RuntimeError"


class TestSequenceShape:
    def test_each_element_normalized(self):
        results = list(normalize({"app": "a"}, [{"message": "one"}, "two", ValueError("three")], {"tag": "t"}))
        assert [event["message"] for event, _ in results] == ["one", "two", "three"]
        assert all(event["tag"] == "t" and event["app"] == "a" for event, _ in results)
        assert results[2][0]["code"] == "ValueError"

    def test_immediate_shared(self):
        results = list(normalize({}, ["a", "b"], {}, True))
        assert [immediate for _, immediate in results] == [True, True]

    def test_empty_sequence(self):
        assert list(normalize({}, [])) == []


class TestFlagShape:
    def test_object_message_used_as_fields(self):
        [(event, immediate)] = list(normalize({}, {"message": "m", "level": "info"}, True))
        assert immediate is True
        assert event["level"] == "info"
        assert event["message"] == "m"

    def test_string_message(self):
        [(event, immediate)] = list(normalize({}, "m", False))
        assert immediate is False
        assert set(event) == {"ts", "message"}


@pytest.mark.parametrize("fields", [object(), "text", ["list"]])
def test_malformed_fields_never_raise(fields):
    [(event, _)] = list(normalize({}, "m", fields))
    assert event["message"] == "m"
