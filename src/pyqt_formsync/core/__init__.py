"""
Core utilities.

Collection algebra, configuration merging and background execution with no
form-specific logic.
"""

from .registry import Registry, read_member_key
from .merge import merge_deep
from .background_task import BackgroundTask, run_in_background, background_validator

__all__ = [
    "Registry",
    "read_member_key",
    "merge_deep",
    "BackgroundTask",
    "run_in_background",
    "background_validator",
]
