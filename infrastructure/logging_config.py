"""
Logging configuration for the hotel booking service.
Console output in either a plain or a JSON layout.
"""
import logging
import logging.config
from datetime import datetime
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from infrastructure.config import Settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, level and logger name"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = datetime.utcnow().isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    formatter = 'json' if settings.LOG_FORMAT == 'json' else 'standard'
    level = 'DEBUG' if settings.DEBUG else settings.LOG_LEVEL
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s'
            },
        },
        'handlers': {
            'console': {
                'level': level,
                'class': 'logging.StreamHandler',
                'formatter': formatter,
            },
        },
        'loggers': {
            '': {
                'handlers': ['console'],
                'level': level,
            },
            'uvicorn.access': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False,
            },
        },
    }


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure application logging"""
    logging.config.dictConfig(build_logging_config(settings))
    logger = logging.getLogger("hotel")
    logger.info("Logging initialized with level: %s", settings.LOG_LEVEL)
    return logger
