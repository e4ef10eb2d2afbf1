"""
Leaf node of a form tree.

A Control holds one committed value, its validator configuration and its
interaction flags. Widgets report raw edits through ``update_from_view`` and
blur through ``mark_touched``; everything else is driven by the owning form.
"""

from __future__ import annotations

import copy
import logging
import weakref
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from PyQt6.QtCore import QObject, pyqtSignal

from pyqt_formsync.core.merge import merge_deep
from pyqt_formsync.exceptions import InvalidConfiguration
from pyqt_formsync.protocols import ControlNode
from pyqt_formsync.services.validator_resolver import ValidatorResolver
from .form_context import FormContext
from .node_types import ControlState, _CombinedMeta

if TYPE_CHECKING:
    from .form import Form

logger = logging.getLogger(__name__)

_MISSING = object()


class Control(QObject, ControlNode, metaclass=_CombinedMeta):
    """
    A named value with validators.

    Signals:
        value_changed(object): Emitted after a value is committed.
        state_changed(): Emitted when validity or interaction flags may have changed.

    Example:
        email = Control("email", config={
            "validators": {"required": required, "email": email_validator},
            "errors": [("required", "Email is required."), ("email", "Not an email address.")],
        })
        mount(email, form)
        email.update_from_view("ada@example.com")
    """

    value_changed = pyqtSignal(object)
    state_changed = pyqtSignal()

    def __init__(self, name: str, config: Optional[Mapping] = None, value: Any = None):
        super().__init__()
        if not isinstance(name, str) or not name:
            raise InvalidConfiguration(f"Control name must be a non-empty string, got {name!r}.")
        if config is not None and not isinstance(config, Mapping):
            raise InvalidConfiguration(f"Control \"{name}\" config must be a mapping, got {type(config).__name__}.")

        self.name = name
        self._parent_ref: Optional[weakref.ref] = None
        self._own_context: Optional[FormContext] = None
        self._uid: Optional[str] = None

        self._value = copy.deepcopy(value)
        self._touched = False
        self._dirty = False
        self._disabled = False
        self._custom_error: Any = None
        # Last custom_error_message taken from configuration
        self._configured_error: Any = None

        self._local_config: Dict[str, Any] = dict(config or {})
        self._form_layer: Dict[str, Any] = {}
        self.validator_resolver = ValidatorResolver(self, on_settled=self._on_async_settled)

        self._bind()

    def __repr__(self) -> str:
        return f"Control(name={self.name!r}, value={self._value!r})"

    # ========== TREE ==========

    @property
    def parent_form(self) -> Optional['Form']:
        return self._parent_ref() if self._parent_ref is not None else None

    @property
    def context(self) -> FormContext:
        """Context of the tree this control is mounted in."""
        parent = self.parent_form
        if parent is not None:
            return parent.context
        if self._own_context is None:
            self._own_context = FormContext()
        return self._own_context

    def _attach(self, parent: Optional['Form']) -> None:
        if parent is None:
            self._parent_ref = None
            self._discard_state()
            return

        self._parent_ref = weakref.ref(parent)
        if self._uid is None:
            self._uid = f"{self.name}-{self.context.next_id()}"

    def _discard_state(self) -> None:
        self._value = None
        self._touched = False
        self._dirty = False
        self._custom_error = None
        self._form_layer = {}
        self._bind()
        self.validator_resolver.invalidate()

    def get_control_id(self) -> str:
        """Unique id for widget markup, e.g. ``"signup-email-3"``."""
        parent = self.parent_form
        if parent is None or self._uid is None:
            return self.name
        return f"{parent.name}-{self._uid}"

    # ========== VALUES ==========

    def get_value(self) -> Any:
        return self._value

    def set_value(self, value: Any) -> None:
        """Stage ``value``; committed immediately unless a batch is open."""
        self.context.stage(self, value)

    def update_from_view(self, value: Any) -> None:
        """Raw value change reported by a widget. Marks the control dirty."""
        self.context.stage(self, value, from_view=True)

    def get_model_values(self) -> Any:
        return self.get_value()

    def set_model_values(self, value: Any) -> None:
        self.set_value(value)

    def _apply_value(self, value: Any, from_view: bool = False) -> None:
        """Commit a staged value. Called by FormContext.commit."""
        self._value = copy.deepcopy(value)
        if from_view:
            self._dirty = True
        self.validator_resolver.validate(self._value)

    # ========== INTERACTION ==========

    def mark_touched(self) -> None:
        if self._touched:
            return
        self._touched = True
        self.context.dispatcher.dispatch_state(self)

    def reset(self, value: Any = _MISSING) -> None:
        """Return to untouched and pristine, optionally with a new value, and revalidate."""
        self._touched = False
        self._dirty = False
        if value is _MISSING:
            self._revalidate()
        else:
            self.set_value(value)
            self.context.dispatcher.dispatch_state(self)

    def is_submitted(self) -> bool:
        parent = self.parent_form
        return parent.is_submitted() if parent is not None else False

    def is_disabled(self) -> bool:
        if self._disabled:
            return True
        parent = self.parent_form
        return parent.is_disabled() if parent is not None else False

    def enable(self) -> None:
        self._disabled = False
        self.context.dispatcher.dispatch_state(self)

    def disable(self) -> None:
        self._disabled = True
        self.context.dispatcher.dispatch_state(self)

    # ========== STATE ==========

    @property
    def state(self) -> ControlState:
        return self.context.aggregator.control_state(self)

    @property
    def valid(self) -> bool:
        return self.context.aggregator.control_valid(self)

    @property
    def pending(self) -> bool:
        return self.context.aggregator.control_pending(self)

    @property
    def touched(self) -> bool:
        return self._touched

    @property
    def dirty(self) -> bool:
        return self._dirty

    def show_errors_on(self):
        parent = self.parent_form
        if parent is not None:
            return parent.show_errors_on()
        return self.context.config.show_errors_on

    # ========== ERRORS ==========

    def get_errors(self) -> Optional[Dict[str, bool]]:
        """Failing keys, or None when valid or hidden by the visibility policy."""
        return self.context.aggregator.visible_errors(self)

    def get_error_message(self) -> Optional[Any]:
        return self.context.aggregator.resolve_message(self)

    def get_error_messages(self) -> List[Tuple[str, Any]]:
        """The configured (key, message) table, newest entries first."""
        return list(self.validator_resolver.error_table)

    def has_custom_error(self) -> bool:
        return self._custom_error is not None

    def get_custom_error_message(self) -> Optional[Any]:
        message = self._custom_error
        return message() if callable(message) else message

    def set_custom_error_message(self, message: Any) -> None:
        """Apply server-side feedback. ``message`` is a string or a zero-argument producer."""
        if message is None:
            self.clear_custom_error_message()
            return
        self._custom_error = message
        self.context.dispatcher.dispatch_state(self)

    def clear_custom_error_message(self) -> None:
        if self._custom_error is None:
            return
        self._custom_error = None
        self.context.dispatcher.dispatch_state(self)

    # ========== CONFIGURATION ==========

    def configure(self, config: Optional[Mapping] = None) -> None:
        """Merge ``config`` into the local configuration, rebind validators and revalidate."""
        if config is None:
            return
        if not isinstance(config, Mapping):
            raise InvalidConfiguration(
                f"Control \"{self.name}\" config must be a mapping, got {type(config).__name__}."
            )
        self._local_config = merge_deep(self._local_config, config)
        self._bind()
        self._revalidate()

    def _set_form_layer(self, layer: Optional[Mapping], revalidate: bool = True) -> None:
        """Configuration supplied by the owning form. Takes precedence over local config."""
        if layer is not None and not isinstance(layer, Mapping):
            raise InvalidConfiguration(
                f"Control \"{self.name}\" config must be a mapping, got {type(layer).__name__}."
            )
        self._form_layer = dict(layer or {})
        self._bind()
        if revalidate:
            self._revalidate()

    def _bind(self) -> None:
        config = merge_deep(self._local_config, self._form_layer)
        self.validator_resolver.bind(config)
        configured = config.get('custom_error_message')
        if configured is not self._configured_error:
            self._configured_error = configured
            if configured is not None:
                self._custom_error = configured

    def _revalidate(self) -> None:
        self.validator_resolver.validate(self._value)
        self.context.dispatcher.dispatch_state(self)

    def _on_async_settled(self) -> None:
        self.context.dispatcher.dispatch_state(self)
