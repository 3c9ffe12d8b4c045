"""Telemetry and observability helpers.

This package emits structured run events for extraction auditing.
"""

from .logger import RunLogger, configure_logging

__all__ = ["RunLogger", "configure_logging"]
