# log_analysis/formatter.py
from .models import LogRecord

ANALYSIS_HEADER = "*Claude Analysis*"


# Slack Formatting
def format_error_alert(record: LogRecord) -> str:
    """Builds the mrkdwn text of the first message announcing the error."""
    return (
        "*Error Log Detected*\n"
        "```\n"
        f"Severity: {record.severity}\n"
        f"Timestamp: {record.timestamp}\n"
        f"Payload: {record.text_payload}\n"
        "```"
    )


def format_analysis_reply(analysis: str) -> str:
    """Prefixes Claude's analysis with a bold header for the thread reply."""
    return f"{ANALYSIS_HEADER}\n{analysis}"
