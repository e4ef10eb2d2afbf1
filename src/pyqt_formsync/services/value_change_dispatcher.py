"""
Unified Value Change Dispatcher.

Turns a committed batch of control values into signal emissions, bottom-up:
controls first, then every affected ancestor form (deepest first), then the
root with a full path per change.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

from pyqt_formsync.forms.node_types import FormMode

if TYPE_CHECKING:
    from pyqt_formsync.forms.control import Control
    from pyqt_formsync.forms.form import Form
    from pyqt_formsync.services.model_value_coordinator import ModelValueCoordinator

logger = logging.getLogger(__name__)

# Debug flag for verbose dispatcher logging
DEBUG_DISPATCHER = False


@dataclass(frozen=True)
class ValueChangeEvent:
    """A committed control value."""
    control: 'Control'          # Control whose value was committed
    value: Any                  # Committed value
    from_view: bool = False     # True if the change came from the widget layer


class ValueChangeDispatcher:
    """Dispatcher owned by one FormContext."""

    def __init__(self, coordinator: 'ModelValueCoordinator'):
        self._coordinator = coordinator
        self._dispatching = False

    def dispatch(self, events: Sequence[ValueChangeEvent]) -> None:
        """Emit value and state signals for a committed batch."""
        if not events:
            return

        # Reentrancy guard
        if self._dispatching:
            logger.warning("Dispatch requested while dispatching; commit the batch through FormContext instead")
            return
        self._dispatching = True

        try:
            if DEBUG_DISPATCHER:
                logger.info(f"DISPATCH: {len(events)} change(s)")

            # 1. Controls and their direct parents
            affected: Dict[int, 'Form'] = {}
            for event in events:
                control = event.control
                control.value_changed.emit(event.value)
                control.state_changed.emit()

                parent = control.parent_form
                if parent is not None:
                    parent.control_value_changed.emit(control.name, event.value)
                for form in self._ancestors(control):
                    affected[id(form)] = form

            # 2. Derive upward, deepest forms first
            for form in sorted(affected.values(), key=self._depth, reverse=True):
                value = self._coordinator.derive_value(form)
                if DEBUG_DISPATCHER:
                    logger.info(f"  Derived {form.name}: {repr(value)[:80]}")
                form.model_values_changed.emit(value)
                form.state_changed.emit()

            # 3. Emit from ROOT with full path
            for event in events:
                ancestors = self._ancestors(event.control)
                if not ancestors:
                    continue
                root = ancestors[-1]
                full_path = self.path_of(event.control)
                if DEBUG_DISPATCHER:
                    logger.info(f"  Emitting {root.name}.value_changed({full_path!r})")
                root.value_changed.emit(full_path, event.value)
        finally:
            self._dispatching = False

    def dispatch_state(self, node) -> None:
        """Emit ``state_changed`` on ``node`` and every ancestor."""
        node.state_changed.emit()
        for form in self._ancestors(node):
            form.state_changed.emit()

    def dispatch_structure(self, form: 'Form') -> None:
        """Re-derive ``form`` and its ancestors after a child was added or removed."""
        if self._dispatching:
            return
        for current in [form] + self._ancestors(form):
            current.model_values_changed.emit(self._coordinator.derive_value(current))
            current.state_changed.emit()

    # ========== TREE HELPERS ==========

    @staticmethod
    def _ancestors(node) -> List['Form']:
        chain: List['Form'] = []
        current = node.parent_form
        while current is not None:
            chain.append(current)
            current = current.parent_form
        return chain

    @classmethod
    def _depth(cls, node) -> int:
        return len(cls._ancestors(node))

    @staticmethod
    def path_of(node) -> str:
        """
        Dotted path of ``node`` below its root; array children appear as indices.

        Example: "addresses.1.name"
        """
        parts: List[str] = []
        current = node
        while current.parent_form is not None:
            parent = current.parent_form
            if parent.effective_mode is FormMode.ARRAY:
                parts.append(str(parent.registry.index_of(current)))
            else:
                parts.append(current.name)
            current = parent
        return ".".join(reversed(parts))
