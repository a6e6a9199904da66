"""structlog wiring shared by ``settings`` and ``test_settings``.

Every record (structlog or plain stdlib) goes through the same processor
chain and is rendered as one JSON object per line.  Secrets and customer
phone numbers are masked both when they appear as ``key=value`` inside a
string and when they are passed as a keyword whose name is sensitive.
"""

import re

import structlog

MASK = "***MASKED***"
SENSITIVE_NAMES = r"password|passwd|secret|token|authorization|phone"

SENSITIVE_PATTERN = re.compile(
    rf"({SENSITIVE_NAMES})" r"""([=:]\s*["']?)([^\s,}"']+)""",
    re.IGNORECASE,
)
SENSITIVE_KEY = re.compile(SENSITIVE_NAMES, re.IGNORECASE)


def mask_sensitive_data(_, __, event_dict):
    """Processor that masks passwords, tokens and phone numbers in log values."""
    for key, value in list(event_dict.items()):
        if key != "event" and SENSITIVE_KEY.search(key) and value is not None:
            event_dict[key] = MASK
        elif isinstance(value, str):
            event_dict[key] = SENSITIVE_PATTERN.sub(MASK, value)
    return event_dict


SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    mask_sensitive_data,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def configure_structlog():
    structlog.configure(
        processors=[
            *SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def logging_config(level="INFO"):
    """Django ``LOGGING`` dict routing everything to a JSON console handler."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.JSONRenderer(),
                ],
                "foreign_pre_chain": SHARED_PROCESSORS,
            },
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "json"},
        },
        "root": {"handlers": ["console"], "level": level},
        "loggers": {
            "django": {"handlers": ["console"], "level": level, "propagate": False},
            "django.server": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        },
    }
