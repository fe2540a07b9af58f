import logging
import sys
import traceback
from colorlog import ColoredFormatter

LOGGER_NAME = "function_deployer"

DEBUG_MODE = False


def setup_logger(debug_mode=False):
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    # Create console handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    # Create colored formatter
    formatter = ColoredFormatter(
        "%(log_color)s[%(levelname)s] %(message)s",
        log_colors={
            "DEBUG":    "cyan",
            "INFO":     "green",
            "WARNING":  "yellow",
            "ERROR":    "red",
            "CRITICAL": "red,bg_white",
        }
    )
    handler.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(handler)
    else:
        for existing in logger.handlers:
            existing.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    return logger


def configure_logger(mode: str):
    """
    Re-configure the shared logger from the deployment mode.

    Args:
        mode: "DEBUG" enables debug output, anything else keeps INFO.
    """
    global logger, DEBUG_MODE
    DEBUG_MODE = (mode or "").upper() == "DEBUG"
    logger = setup_logger(debug_mode=DEBUG_MODE)
    if DEBUG_MODE:
        logger.debug("Debug mode is active.")
    return logger


def print_stack_trace():
    """Print the stack trace if debug mode is enabled."""
    if DEBUG_MODE:
        error_msg = traceback.format_exc()
        logger.error(error_msg)


# Logger defaults to INFO unless reconfigured from the deployment config.
logger = setup_logger(debug_mode=DEBUG_MODE)
