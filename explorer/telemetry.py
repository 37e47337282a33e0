"""Telemetry sink interface and its logging-backed default."""

from common.logging_config import get_logger

logger = get_logger(__name__)


class TelemetrySink:
    """Receives usage events, metrics and reported exceptions."""

    def track_event(self, name: str) -> None:
        raise NotImplementedError

    def track_metric(self, name: str, value: float) -> None:
        raise NotImplementedError

    def track_exception(self, error: BaseException) -> None:
        raise NotImplementedError


class LoggingTelemetrySink(TelemetrySink):
    """Writes telemetry to the standard logging hierarchy."""

    def track_event(self, name: str) -> None:
        logger.debug(f"Event: {name}")

    def track_metric(self, name: str, value: float) -> None:
        logger.debug(f"Metric: {name}={value}")

    def track_exception(self, error: BaseException) -> None:
        logger.warning(f"Reported error: {type(error).__name__}: {error}")
