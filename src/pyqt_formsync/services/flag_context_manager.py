"""
Context manager factory for temporary boolean flags.

Pattern:
    Instead of:
        self._in_distribute = True
        try:
            # ... logic
        finally:
            self._in_distribute = False

    Use:
        with FlagContextManager.manage_flags(self, _in_distribute=True):
            # ... logic

Previous values are restored even when the block raises.
"""

from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Set
import logging

logger = logging.getLogger(__name__)


class FormFlag(Enum):
    """
    Registry of valid temporary flags on forms and form contexts.

    Add new flags here as they're introduced to the codebase.
    """
    IN_DISTRIBUTE = '_in_distribute'
    IN_COMMIT = '_in_commit'


class FlagContextManager:
    """
    Universal context manager for temporary boolean flags.

    Examples:
        # Single flag:
        with FlagContextManager.manage_flags(root, _in_distribute=True):
            coordinator.distribute_value(root, values)

        # Convenience method:
        with FlagContextManager.commit_context(context):
            context._apply_staged()
    """

    # Registry of valid flags (extracted from enum)
    VALID_FLAGS: Set[str] = {flag.value for flag in FormFlag}

    @staticmethod
    @contextmanager
    def manage_flags(obj: Any, **flags: bool):
        """
        Set flags on entry and restore their previous values on exit.

        Args:
            obj: Object to set flags on (a Form or FormContext)
            **flags: Flag names and values to set (e.g., _in_distribute=True)

        Raises:
            ValueError: If any flag name is not in VALID_FLAGS registry
            AttributeError: If ``obj`` never initialized one of the flags
        """
        invalid_flags = set(flags.keys()) - FlagContextManager.VALID_FLAGS
        if invalid_flags:
            raise ValueError(
                f"Invalid flags: {invalid_flags}. "
                f"Valid flags: {FlagContextManager.VALID_FLAGS}. "
                f"Add new flags to FormFlag enum."
            )

        # Direct attribute access: flags must be initialized in __init__
        prev_values: Dict[str, bool] = {}
        for flag_name in flags:
            prev_values[flag_name] = getattr(obj, flag_name)

        for flag_name, flag_value in flags.items():
            setattr(obj, flag_name, flag_value)
            logger.debug(f"Setting flag {flag_name}={flag_value} on {type(obj).__name__}")

        try:
            yield
        finally:
            for flag_name, prev_value in prev_values.items():
                setattr(obj, flag_name, prev_value)

    @staticmethod
    @contextmanager
    def distribute_context(obj: Any):
        """Mark ``obj`` as running a one-shot downward distribution."""
        with FlagContextManager.manage_flags(obj, **{FormFlag.IN_DISTRIBUTE.value: True}):
            yield

    @staticmethod
    @contextmanager
    def commit_context(obj: Any):
        """Mark ``obj`` as applying a batch of staged values."""
        with FlagContextManager.manage_flags(obj, **{FormFlag.IN_COMMIT.value: True}):
            yield

    @staticmethod
    def is_flag_set(obj: Any, flag: FormFlag) -> bool:
        """
        Check if a flag is currently set to True.

        Example:
            if FlagContextManager.is_flag_set(root, FormFlag.IN_DISTRIBUTE):
                return  # One-shot distribution already running
        """
        return getattr(obj, flag.value)
