"""Strand UI package.

Rich terminal UI components for strand:
- RichProgressRenderer: one live spinner line per plugin being installed
"""

from strand_ui.progress import RichProgressRenderer, format_state

__all__ = [
    "RichProgressRenderer",
    "format_state",
]
