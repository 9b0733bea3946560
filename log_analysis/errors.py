# log_analysis/errors.py


class LogAnalysisError(Exception):
    """Base class for every failure raised by the log analysis service."""


class DecodeError(LogAnalysisError):
    """The inbound push envelope, its base64 data or the inner log record is malformed."""


class ConfigError(LogAnalysisError):
    """A required credential or identifier is missing from the settings."""


class UpstreamError(LogAnalysisError):
    """Slack, GitHub or Claude failed at the transport level or returned a non-success response."""
