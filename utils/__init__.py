"""Utility modules for the analysis layer.

This package provides logging setup, string normalization and hashing, and an exclusive async queue.
"""

from utils.excludable_queue import ExcludableQueue
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

__all__: list[str] = ["ExcludableQueue", "LoggerUtils", "StringUtils"]
