import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

_run_id: ContextVar[str | None] = ContextVar("pii_agent_run_id", default=None)


class Log:
    """Centralized logging with structured format.

    Messages emitted while a workflow run is active are prefixed with the
    run id, so interleaved output from a cancelled run and its successor
    can be told apart.
    """

    _logger: logging.Logger = logging.getLogger("pii_agent")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Configure the logger with the specified level and stdout handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(
                logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    @contextmanager
    def run_context(cls, run_id: str) -> Iterator[None]:
        """Tag every message logged inside the block with *run_id*."""
        token = _run_id.set(run_id)
        try:
            yield
        finally:
            _run_id.reset(token)

    @classmethod
    def current_run_id(cls) -> str | None:
        return _run_id.get()

    @classmethod
    def _format(cls, message: str) -> str:
        run_id = _run_id.get()
        return f"[run {run_id}] {message}" if run_id else message

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        """Log an info message."""
        cls._logger.info(cls._format(message), extra=kwargs)

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        """Log an error message."""
        cls._logger.error(cls._format(message), extra=kwargs)

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        """Log a warning message."""
        cls._logger.warning(cls._format(message), extra=kwargs)

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        """Log a debug message."""
        cls._logger.debug(cls._format(message), extra=kwargs)
