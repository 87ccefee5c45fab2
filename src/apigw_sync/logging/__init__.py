"""Logging configuration for apigw_sync."""

from apigw_sync.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
