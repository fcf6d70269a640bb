"""
logging_config.py - Centralized JSON Logging Configuration

PURPOSE:
    Structured JSON logging for the marketplace service with timezone-aware
    timestamps, request/event correlation and service-name injection.

JSON LOG FIELDS:
    - timestamp: ISO 8601 in the configured timezone (default Asia/Kolkata)
    - level: Log level (INFO, ERROR, WARNING, DEBUG, CRITICAL)
    - logger: Module where the log originated (e.g. "order_workflow")
    - message: The log message
    - service_name: Injected by ServiceFilter
    - correlation_id: Optional, e.g. the order id an event belongs to
    - event_type: Optional, the domain event being published
    - exception: Stack trace when exc_info is attached

USAGE:
    from logging_config import setup_logging
    setup_logging("marketplace-service", level="INFO")

    logger = logging.getLogger(__name__)
    logger.info("Order placed", extra={"correlation_id": order.id})

EXAMPLE JSON OUTPUT:
    {
        "timestamp": "2026-10-19T14:02:11.001014+05:30",
        "level": "INFO",
        "logger": "catalog_repository",
        "message": "Reserved 3 units of PROD-1A2B3C4D5E6F (quantity now 2)",
        "service_name": "marketplace-service"
    }
"""

import json
import logging
import sys
from datetime import datetime
from zoneinfo import ZoneInfo
from typing import Any, Dict

DEFAULT_TIMEZONE = "Asia/Kolkata"


class JsonFormatter(logging.Formatter):
    """Custom formatter that outputs JSON logs with correlation context."""

    def __init__(self, tz_name: str = DEFAULT_TIMEZONE):
        super().__init__()
        self.tz = ZoneInfo(tz_name)

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(self.tz).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "correlation_id"):
            log_data["correlation_id"] = record.correlation_id
        if hasattr(record, "service_name"):
            log_data["service_name"] = record.service_name
        if hasattr(record, "event_type"):
            log_data["event_type"] = record.event_type

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ServiceFilter(logging.Filter):
    """Stamps every record with the owning service name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        return True


def setup_logging(service_name: str, level: str = "INFO", tz_name: str = DEFAULT_TIMEZONE) -> None:
    """Setup JSON logging for a service. Safe to call more than once."""
    logger = logging.getLogger()
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if isinstance(handler.formatter, JsonFormatter):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(tz_name))
    handler.addFilter(ServiceFilter(service_name))
    logger.addHandler(handler)
