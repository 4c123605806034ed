"""
Icon utilities for consistent terminal display.

Unicode emojis/icons render at different widths across terminals, fonts,
and systems. This module provides cell-width-aware padding functions that
normalize widths using Rich's cell_len for better visual alignment.
"""

import rich.cells as _rich_cells

# =============================================================================
# Icon Constants
# =============================================================================

ICON_SUCCESS = "✓"       # Installed, updated, removed
ICON_FAILURE = "✗"       # Missing, failed
ICON_WARNING = "⚠️"      # Skipped, cached copy in use
ICON_REMOTE = "🌐"       # Remote (git) source
ICON_LOCAL = "📁"        # Local source or skill folder
ICON_LINK = "→"          # Link target

# Default target width for icon + padding (in terminal cells)
DEFAULT_ICON_WIDTH = 3


# =============================================================================
# Cell-Width-Aware String Padding
# =============================================================================


def cell_ljust(text: str, width: int) -> str:
    """Left-justify text to a cell width (pad on right).

    Like str.ljust() but uses terminal cell width instead of character count.

    Args:
        text: The text to pad.
        width: Target width in terminal cells.

    Returns:
        Text with trailing spaces to reach width.
    """
    current = _rich_cells.cell_len(text)
    return text + " " * max(0, width - current)


def column_width(values: list[str], minimum: int = 0) -> int:
    """Widest cell width among `values` (at least `minimum`)."""
    return max([minimum, *(_rich_cells.cell_len(v) for v in values)])


# =============================================================================
# Convenience Functions
# =============================================================================


def icon_success() -> str:
    """Padded success icon (✓)."""
    return cell_ljust(ICON_SUCCESS, DEFAULT_ICON_WIDTH)


def icon_failure() -> str:
    """Padded failure icon (✗)."""
    return cell_ljust(ICON_FAILURE, DEFAULT_ICON_WIDTH)


def icon_warning() -> str:
    """Padded warning icon (⚠️)."""
    return cell_ljust(ICON_WARNING, DEFAULT_ICON_WIDTH)


def icon_source(remote: bool) -> str:
    """Padded source-kind icon: 🌐 for remote, 📁 for local."""
    return cell_ljust(ICON_REMOTE if remote else ICON_LOCAL, DEFAULT_ICON_WIDTH)
