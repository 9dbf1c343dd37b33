from .report import render_log_report
from .tools import search_logs
from .transformer import transform_log, transform_log_page

__all__ = [
    "render_log_report",
    "search_logs",
    "transform_log",
    "transform_log_page",
]
