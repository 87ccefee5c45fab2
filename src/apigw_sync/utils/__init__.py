"""Utility functions for apigw_sync."""

from apigw_sync.utils.concurrency import Outcome, fan_out, raise_first_error
from apigw_sync.utils.ids import generate_id, statement_id

__all__ = [
    "Outcome",
    "fan_out",
    "generate_id",
    "raise_first_error",
    "statement_id",
]
