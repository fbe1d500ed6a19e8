"""Centralized workspace path management.

All tool-managed artifacts go under var/ (configurable via LOCALPLAN_WORKDIR).
"""

from pathlib import Path
from typing import Optional, TYPE_CHECKING

from .config import SETTINGS

if TYPE_CHECKING:
    from .config import Settings


def workdir(settings: Optional["Settings"] = None) -> Path:
    """Tool-managed workspace directory (default: var/)"""
    return Path((settings or SETTINGS).LOCALPLAN_WORKDIR)


def runs(settings: Optional["Settings"] = None) -> Path:
    """Runs artifact directory (default: var/runs/)"""
    return workdir(settings) / "runs"
