"""
PM (portfolio) outputs — summary metrics and exports.
"""

from .metrics import ProjectionSummary, compute_summary, first_year_reaching
from .exporters import export_config, export_csv, export_text_report, render_text_report

__all__ = [
    "ProjectionSummary",
    "compute_summary",
    "first_year_reaching",
    "export_config",
    "export_csv",
    "export_text_report",
    "render_text_report",
]
