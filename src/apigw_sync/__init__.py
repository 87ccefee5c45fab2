"""apigw-sync - reconcile declared HTTP endpoints with an AWS API Gateway REST API."""

from apigw_sync.__version__ import __version__

__all__ = ["__version__"]
