# cli/push_event.py
"""
Sends a sample error log to a running log-analysis-server, wrapped exactly the
way a Pub/Sub push subscription would deliver it.
"""
import argparse
import os
from datetime import datetime, timezone

import requests
from dotenv import load_dotenv

from log_analysis.decoder import encode_push_event
from log_analysis.models import LogRecord

# Load environment variables from a .env file for local testing
load_dotenv()

DEFAULT_ENDPOINT = "http://localhost:8080/"


def create_log_record(severity: str, message: str, service: str = "api-server") -> LogRecord:
    """Builds a log entry shaped like a Cloud Run request log."""
    return LogRecord(
        severity=severity.upper(),
        text_payload=message,
        timestamp=datetime.now(timezone.utc).isoformat(),
        resource={"type": "cloud_run_revision", "labels": {"service_name": service}},
        labels={"instanceId": "local-test"},
    )


def send_push_event(endpoint: str, record: LogRecord, timeout: float = 10) -> requests.Response:
    """POSTs the push envelope for `record` and raises on a non-2xx answer."""
    envelope = encode_push_event(record, attributes={"logging.googleapis.com/timestamp": record.timestamp})
    response = requests.post(endpoint, json=envelope, timeout=timeout)
    response.raise_for_status()
    return response


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("message", nargs="?", default="runtime error: invalid memory address or nil pointer dereference")
    parser.add_argument("--severity", default="ERROR")
    parser.add_argument("--service", default="api-server")
    parser.add_argument("--endpoint", default=os.environ.get("LOG_ANALYSIS_ENDPOINT", DEFAULT_ENDPOINT))
    args = parser.parse_args(argv)

    record = create_log_record(args.severity, args.message, args.service)
    print(f"--- Pushing {record.severity} log to {args.endpoint} ---")
    try:
        response = send_push_event(args.endpoint, record)
    except requests.exceptions.RequestException as e:
        print(f"❌ Failed to push log event: {e}")
        return 1

    print(f"✅ Success! Status Code: {response.status_code}, Body: {response.text}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
