"""CLI utilities."""

from activity_monitor.utils.console import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
