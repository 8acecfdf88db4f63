"""Session statistics and the hand-off to report generation.

:mod:`stats` reduces a window of samples to per-channel summaries with NumPy
and defines the request passed to the external report collaborator. It stays
free of I/O and Qt so scripts, tests and GUIs can share it.
"""

from .stats import (
    REPORT_CHANNELS,
    ReportExporter,
    ReportGenerator,
    ReportRequest,
    SessionSummary,
    build_report_request,
    summarize,
)

__all__ = [
    "REPORT_CHANNELS",
    "ReportExporter",
    "ReportGenerator",
    "ReportRequest",
    "SessionSummary",
    "build_report_request",
    "summarize",
]
