"""
Logging configuration for the agent process
"""

import logging
import os
from typing import Any, Dict, Optional


class SecretFilter(logging.Filter):
    """Filter that masks a secret value in formatted log messages."""

    def __init__(self, secret: Optional[str] = None):
        super().__init__()
        self.secret = secret

    def filter(self, record: logging.LogRecord) -> bool:
        """Replace the secret in the rendered message, never drop records."""
        if not self.secret:
            return True
        message = record.getMessage()
        if self.secret in message:
            record.msg = message.replace(self.secret, "****")
            record.args = None
        return True


def get_logging_config(level: Optional[str] = None, secret: Optional[str] = None) -> Dict[str, Any]:
    """Get logging configuration with secret masking."""
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "secret_filter": {
                "()": SecretFilter,
                "secret": secret,
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
                "filters": ["secret_filter"]
            }
        },
        "loggers": {
            "eg-agent": {
                "level": level
            },
            "urllib3": {
                "level": "WARNING"
            }
        },
        "root": {
            "level": level,
            "handlers": ["default"]
        }
    }
