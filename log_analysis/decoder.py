# log_analysis/decoder.py
import base64
import binascii

from pydantic import ValidationError

from .errors import DecodeError
from .models import LogRecord, PushEnvelope


def decode_push_event(body: bytes) -> LogRecord:
    """
    Unwraps a Pub/Sub push request into the log record it carries.

    Args:
        body: The raw HTTP request body.

    Returns:
        The decoded LogRecord.

    Raises:
        DecodeError: If the envelope, its base64 data or the inner log entry
            is malformed.
    """
    try:
        envelope = PushEnvelope.model_validate_json(body)
    except ValidationError as e:
        raise DecodeError(f"invalid push envelope: {e}") from e

    try:
        data = base64.b64decode(envelope.message.data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid base64 data: {e}") from e

    try:
        return LogRecord.model_validate_json(data)
    except ValidationError as e:
        raise DecodeError(f"invalid log entry: {e}") from e


def encode_push_event(record: LogRecord, attributes: dict | None = None) -> dict:
    """Builds the push envelope a Pub/Sub subscription would deliver for `record`."""
    data = record.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
    return {
        "message": {
            "data": base64.b64encode(data).decode("ascii"),
            "attributes": attributes or {},
        }
    }
