"""UI layer -- Rich dashboard and output formatters."""

from .dashboard import (
    PhaseProgress,
    console,
    print_final_results,
    print_header,
    print_history,
)
from .output import (
    append_csv,
    format_csv_header,
    format_csv_row,
    format_text_result,
    save_json,
)

__all__ = [
    "PhaseProgress",
    "append_csv",
    "console",
    "format_csv_header",
    "format_csv_row",
    "format_text_result",
    "print_final_results",
    "print_header",
    "print_history",
    "save_json",
]
