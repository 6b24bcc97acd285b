class DetectorError(Exception):
    """Raised when PII detection fails."""


class ServiceUnavailableError(DetectorError):
    """Raised when the detection backend cannot be reached or is unhealthy."""


class DetectorTimeoutError(DetectorError, TimeoutError):
    """Raised when the detection backend does not answer in time."""
