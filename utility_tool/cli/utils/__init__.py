"""CLI utility functions"""

from .output import (
    console,
    format_sync_report,
    format_check_results,
    format_utility_list,
    format_version_list,
    print_success,
)

__all__ = [
    'console',
    'format_sync_report',
    'format_check_results',
    'format_utility_list',
    'format_version_list',
    'print_success',
]
