# tests/test_decoder.py
import base64
import json

import pytest

from log_analysis.decoder import decode_push_event, encode_push_event
from log_analysis.errors import DecodeError


def make_body(data: str, attributes=None) -> bytes:
    return json.dumps({"message": {"data": data, "attributes": attributes or {}}}).encode("utf-8")


def encode_entry(entry: dict) -> str:
    return base64.b64encode(json.dumps(entry).encode("utf-8")).decode("ascii")


def test_decodes_log_entry(sample_log_entry):
    record = decode_push_event(make_body(encode_entry(sample_log_entry), {"logging.googleapis.com/timestamp": "x"}))

    assert record.severity == "ERROR"
    assert record.text_payload == sample_log_entry["textPayload"]
    assert record.timestamp == "2024-06-17T13:31:00.123456Z"
    assert record.resource.type == "cloud_run_revision"
    assert record.resource.labels["location"] == "us-central1"
    assert record.labels == {"instanceId": "00f4b2"}
    assert record.json_payload is None


def test_decodes_structured_payload():
    entry = {"severity": "CRITICAL", "jsonPayload": {"message": "db down", "retry": 3, "tags": ["a", "b"]}}

    record = decode_push_event(make_body(encode_entry(entry)))

    assert record.json_payload == {"message": "db down", "retry": 3, "tags": ["a", "b"]}
    # Absent fields fall back to empty values
    assert record.text_payload == ""
    assert record.timestamp == ""
    assert record.resource.labels == {}


def test_null_fields_decode_as_empty_values():
    entry = {
        "severity": "ERROR",
        "textPayload": "boom",
        "timestamp": None,
        "labels": None,
        "jsonPayload": None,
        "resource": {"type": None, "labels": None},
    }

    record = decode_push_event(make_body(encode_entry(entry)))

    assert record.severity == "ERROR"
    assert record.text_payload == "boom"
    assert record.timestamp == ""
    assert record.labels == {}
    assert record.json_payload is None
    assert record.resource.type == ""
    assert record.resource.labels == {}


def test_null_resource_decodes_as_empty_descriptor():
    record = decode_push_event(make_body(encode_entry({"severity": "CRITICAL", "resource": None})))

    assert record.resource.type == ""
    assert record.resource.labels == {}


def test_record_is_immutable(sample_log_entry):
    record = decode_push_event(make_body(encode_entry(sample_log_entry)))

    with pytest.raises(Exception):
        record.severity = "INFO"


def test_envelope_round_trip_is_lossless(sample_log_entry):
    record = decode_push_event(make_body(encode_entry(sample_log_entry)))

    envelope = encode_push_event(record)
    again = decode_push_event(json.dumps(envelope).encode("utf-8"))

    assert again == record
    inner = json.loads(base64.b64decode(envelope["message"]["data"]))
    assert inner == sample_log_entry


@pytest.mark.parametrize(
    "body",
    [
        b"not json at all",
        b'{"message": ',
        b'{"subscription": "projects/p/subscriptions/s"}',
        b'{"message": {"attributes": {}}}',
        b"[]",
    ],
    ids=["garbage", "truncated", "no-message", "no-data", "array"],
)
def test_malformed_envelope_is_rejected(body):
    with pytest.raises(DecodeError, match="envelope"):
        decode_push_event(body)


def test_invalid_base64_is_rejected():
    with pytest.raises(DecodeError, match="base64"):
        decode_push_event(make_body("@@not-base64@@"))


@pytest.mark.parametrize(
    "inner",
    [b"{not json", b"", b'"just a string"', b'{"severity": 5}', b'{"labels": {"k": 1}}'],
    ids=["broken-json", "empty", "string", "wrong-severity-type", "non-string-label"],
)
def test_malformed_log_entry_is_rejected(inner):
    data = base64.b64encode(inner).decode("ascii")

    with pytest.raises(DecodeError, match="log entry"):
        decode_push_event(make_body(data))
