"""CLI output formatting."""

from apigw_sync.cli.output.formatters import OutputFormat, OutputFormatter, get_formatter

__all__ = ["OutputFormat", "OutputFormatter", "get_formatter"]
