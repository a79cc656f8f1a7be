"""Utility functions for eb-deploy."""

from eb_deploy.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
