"""
Logging configuration: health check suppression and bearer token masking
"""

import logging
import logging.config
import re
from typing import Any, Dict

# header.payload.signature with base64url segments
_JWT_PATTERN = re.compile(r"eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")


class HealthCheckFilter(logging.Filter):
    """Filter to suppress health check endpoint logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter out health check requests from uvicorn access logs."""
        if record.name == "uvicorn.access":
            message = record.getMessage()
            if "/health" in message and "GET" in message:
                return False
        return True


class TokenMaskingFilter(logging.Filter):
    """Mask anything that looks like a JWT before it reaches a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if _JWT_PATTERN.search(message):
            record.msg = mask_tokens(message)
            record.args = ()
        return True


def mask_tokens(text: str) -> str:
    """Replace JWT-looking substrings with a short, non-reversible preview."""
    return _JWT_PATTERN.sub(lambda m: f"{m.group(0)[:10]}...[masked]", text)


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration with health check suppression and token masking."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {
                "()": HealthCheckFilter
            },
            "token_masking_filter": {
                "()": TokenMaskingFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "access": {
                "format": "%(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
                "filters": ["token_masking_filter"]
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter", "token_masking_filter"]
            }
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False
            },
            "uvicorn.error": {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False
            },
            "uvicorn.access": {
                "handlers": ["access"],
                "level": "INFO",
                "propagate": False
            },
            "saleor_app_auth": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": "INFO",
            "handlers": ["default"]
        }
    }
