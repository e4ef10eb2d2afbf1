"""
Validity and interaction aggregation.

Stateless: every answer is recomputed from committed control state, so a
summary can never lag behind the values it describes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING

from pyqt_formsync.forms.node_types import CUSTOM_ERROR_KEY, ControlState, FormSummary

if TYPE_CHECKING:
    from pyqt_formsync.forms.control import Control
    from pyqt_formsync.forms.form import Form

logger = logging.getLogger(__name__)


class ValidationAggregator:
    """
    Combines control flags into form summaries and resolves visible errors.

    Examples:
        aggregator = ValidationAggregator()

        aggregator.summarize(form).valid       # AND over descendant controls
        aggregator.visible_errors(control)     # {"required": True} or None
    """

    # ========== CONTROLS ==========

    @staticmethod
    def failing_keys(control: 'Control') -> Dict[str, bool]:
        """Every currently failing key, the custom error included."""
        failing = dict(control.validator_resolver.errors)
        if control.has_custom_error():
            failing[CUSTOM_ERROR_KEY] = True
        return failing

    def control_valid(self, control: 'Control') -> bool:
        return not self.failing_keys(control)

    @staticmethod
    def control_pending(control: 'Control') -> bool:
        return bool(control.validator_resolver.pending)

    def control_state(self, control: 'Control') -> ControlState:
        return ControlState(
            touched=control._touched,
            dirty=control._dirty,
            submitted=control.is_submitted(),
            pending=self.control_pending(control),
            valid=self.control_valid(control),
        )

    # ========== FORMS ==========

    def summarize(self, form: 'Form') -> FormSummary:
        """AND of validity and OR of pending/touched/dirty over descendant controls."""
        states = [self.control_state(control) for control in self.descendant_controls(form)]
        return FormSummary(
            valid=all(state.valid for state in states),
            pending=any(state.pending for state in states),
            touched=any(state.touched for state in states),
            dirty=any(state.dirty for state in states),
            submitted=form.is_submitted(),
        )

    @staticmethod
    def descendant_controls(form: 'Form') -> List['Control']:
        controls: List['Control'] = []
        stack: List['Form'] = [form]
        while stack:
            current = stack.pop()
            controls.extend(current.controls())
            stack.extend(reversed(current.forms()))
        return controls

    # ========== VISIBILITY ==========

    @staticmethod
    def errors_visible(state: ControlState, show_errors_on: Optional[Iterable[str]]) -> bool:
        """
        Whether a control in ``state`` shows its errors.

        ``None`` shows errors whenever the control is invalid; an empty policy
        never shows them.
        """
        if state.valid:
            return False
        if show_errors_on is None:
            return True
        return any(state.has_flag(flag) for flag in show_errors_on)

    def visible_errors(self, control: 'Control') -> Optional[Dict[str, bool]]:
        """
        Failing keys if the visibility policy allows display, else None.

        A custom error hides validator-driven failures.
        """
        state = self.control_state(control)
        if not self.errors_visible(state, control.show_errors_on()):
            return None
        if control.has_custom_error():
            return {CUSTOM_ERROR_KEY: True}
        return dict(control.validator_resolver.errors)

    def resolve_message(self, control: 'Control') -> Optional[Any]:
        """Message to display: the custom error first, then the ordered table."""
        errors = self.visible_errors(control)
        if not errors:
            return None
        if CUSTOM_ERROR_KEY in errors:
            return control.get_custom_error_message()
        return control.validator_resolver.first_message(errors)
