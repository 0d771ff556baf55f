"""Checklist registry and its bundled data."""

from prosegate.checklists.registry import (
    DATA_DIR,
    ChecklistDataError,
    ChecklistRegistry,
    normalize_program,
)

__all__ = [
    "DATA_DIR",
    "ChecklistDataError",
    "ChecklistRegistry",
    "normalize_program",
]
