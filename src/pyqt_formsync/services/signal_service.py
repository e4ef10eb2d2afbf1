"""
Signal blocking helpers for form nodes.

Key features:
1. Context manager guarantees signal unblocking
2. Supports single or multiple nodes
3. Restores each node's previous blocking state, so blocks nest
"""

from contextlib import contextmanager
from PyQt6.QtCore import QObject
import logging

logger = logging.getLogger(__name__)


class SignalService:
    """
    Service for suppressing node signals during bulk updates.

    Examples:
        # Block signals (context manager):
        with SignalService.block_signals(control):
            control._reset_state()

        # Multiple nodes:
        with SignalService.block_signals(*form.controls()):
            ...
    """

    @staticmethod
    @contextmanager
    def block_signals(*nodes: QObject):
        """Context manager for blocking node signals."""
        previous = []
        for node in nodes:
            if node is not None:
                previous.append((node, node.blockSignals(True)))
                logger.debug(f"Blocked signals on {type(node).__name__}")

        try:
            yield
        finally:
            for node, was_blocked in reversed(previous):
                node.blockSignals(was_blocked)
                logger.debug(f"Restored signals on {type(node).__name__}")
