# # Trace every policy layer to stderr
# export EXECUTION_POLICY_LOG_LEVEL=DEBUG

# # Log to both stderr and file in human-readable format
# export EXECUTION_POLICY_LOG_LEVEL=INFO
# export EXECUTION_POLICY_LOG_OUTPUT=both
# export EXECUTION_POLICY_LOG_FORMAT=human
# export EXECUTION_POLICY_LOG_FILE=policies.log

# # Log to stdout in JSON format
# export EXECUTION_POLICY_LOG_LEVEL=WARNING
# export EXECUTION_POLICY_LOG_OUTPUT=stdout
# export EXECUTION_POLICY_LOG_FORMAT=json


import json
import os
import sys

from loguru import logger

PACKAGE = "execution_policy"

HUMAN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


class JsonFormatter:
    def __call__(self, record):
        log_record = {
            "time": record["time"].isoformat(),
            "level": record["level"].name,
            "message": record["message"],
            "module": record["module"],
            "function": record["function"],
            "line": record["line"],
            "extra": record["extra"],
        }

        if record["exception"] is not None:
            log_record["exception"] = {
                "type": record["exception"].type.__name__,
                "value": str(record["exception"].value),
            }

        # loguru treats the returned string as a format template
        return json.dumps(log_record, default=str).replace("{", "{{").replace("}", "}}") + "\n"


def _add_sink(sink, log_format: str, log_level: str) -> None:
    if log_format == "json":
        logger.add(sink, format=JsonFormatter(), level=log_level, filter=PACKAGE)
    else:
        logger.add(sink, format=HUMAN_FORMAT, level=log_level, filter=PACKAGE)


def setup_logger():
    """Set up the package logger based on environment variables."""
    if os.environ.get("EXECUTION_POLICY_DISABLE_LOGGING", "").lower() in ["true", "1", "yes"]:
        logger.disable(PACKAGE)
        return

    # Silent unless a level is requested
    log_level = os.environ.get("EXECUTION_POLICY_LOG_LEVEL", "").upper()
    if not log_level:
        logger.disable(PACKAGE)
        return

    logger.remove()
    logger.enable(PACKAGE)
    log_output = os.environ.get("EXECUTION_POLICY_LOG_OUTPUT", "stderr").lower()
    log_format = os.environ.get("EXECUTION_POLICY_LOG_FORMAT", "human").lower()

    if log_output in ["stdout", "both"]:
        _add_sink(sys.stdout, log_format, log_level)

    if log_output in ["stderr", "both"]:
        _add_sink(sys.stderr, log_format, log_level)

    if log_output in ["file", "both"]:
        log_file = os.environ.get("EXECUTION_POLICY_LOG_FILE", "execution_policy.log")
        _add_sink(log_file, log_format, log_level)


def get_logger():
    """Get the configured logger."""
    return logger


# Set up the logger when this module is imported
setup_logger()
