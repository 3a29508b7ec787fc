"""
Runtime module - keyset pagination pipeline.
"""

from __future__ import annotations

from .assembler import PageAssembler, build_cursor
from .bounds import build_range_bound
from .executor import PageExecutor
from .paginator import Paginator
from .resolver import ScanPlan, ScanResolver

__all__ = [
    "ScanPlan",
    "ScanResolver",
    "build_range_bound",
    "PageExecutor",
    "PageAssembler",
    "build_cursor",
    "Paginator",
]
