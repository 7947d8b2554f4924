import logging
import sys
from logging.config import dictConfig
from stockledger.core.config import APP_ENV

LOG_LEVEL = "DEBUG" if APP_ENV == "development" else "INFO"

# every module logs under this namespace via getLogger(__name__)
LEDGER_LOGGER = "stockledger"
ACCESS_LOGGER = "stockledger.access"


def setup_logging():
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,

            # -----------------
            # FORMATTERS
            # -----------------
            "formatters": {
                "default": {
                    "format": (
                        "%(asctime)s | %(levelname)s | "
                        "%(name)s | %(message)s"
                    ),
                },
                "access": {
                    "format": (
                        "%(asctime)s | ACCESS | "
                        "%(client_addr)s | %(method)s | "
                        "%(path)s | %(status_code)s | "
                        "%(process_time_ms)sms"
                    ),
                },
            },

            # -----------------
            # HANDLERS
            # -----------------
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "default",
                },
                "access_console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "access",
                },
            },

            # -----------------
            # LOGGERS
            # -----------------
            "loggers": {
                # Used by request_logging_middleware
                ACCESS_LOGGER: {
                    "handlers": ["access_console"],
                    "level": "INFO",
                    "propagate": False,
                },
                LEDGER_LOGGER: {
                    "handlers": ["console"],
                    "level": LOG_LEVEL,
                    "propagate": False,
                },
                "apscheduler": {
                    "level": "WARNING",
                },
            },

            # -----------------
            # ROOT LOGGER
            # -----------------
            "root": {
                "level": "INFO",
                "handlers": ["console"],
            },
        }
    )
