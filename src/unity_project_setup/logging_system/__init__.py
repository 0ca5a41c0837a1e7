"""Logging setup shared by the command line and library entry points."""

from .log_manager import JsonFormatter, LogManager, ROOT_LOGGER

__all__ = ["JsonFormatter", "LogManager", "ROOT_LOGGER"]
