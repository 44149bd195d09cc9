"""Structured JSON logging for assessment audit trails"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from civicflow.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.SERVICE_NAME
        log_record["environment"] = settings.ENVIRONMENT


def setup_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Configure root logging, JSON to stdout unless disabled"""
    logger = logging.getLogger()
    logger.setLevel(level or settings.LOG_LEVEL)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_output if json_output is not None else settings.LOG_JSON:
        formatter: logging.Formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def mask_ein(ein: Optional[str]) -> str:
    """Mask an EIN down to its last four digits for logs and flag text"""
    digits = "".join(ch for ch in (ein or "") if ch.isdigit())
    if len(digits) >= 4:
        return f"***-***{digits[-4:]}"
    return "***-******"
