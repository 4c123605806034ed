"""
Terminal display helpers for skillcast.
"""

from skillcast.ui.icons import (
    ICON_FAILURE,
    ICON_LINK,
    ICON_LOCAL,
    ICON_REMOTE,
    ICON_SUCCESS,
    ICON_WARNING,
    cell_ljust,
    column_width,
    icon_failure,
    icon_source,
    icon_success,
    icon_warning,
)

__all__ = [
    "ICON_FAILURE",
    "ICON_LINK",
    "ICON_LOCAL",
    "ICON_REMOTE",
    "ICON_SUCCESS",
    "ICON_WARNING",
    "cell_ljust",
    "column_width",
    "icon_failure",
    "icon_source",
    "icon_success",
    "icon_warning",
]
