"""
RiceOps Utils - logging helpers.
"""

from riceops.utils.logging import get_logger, log_operation, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "log_operation",
]
