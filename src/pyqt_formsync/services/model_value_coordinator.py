"""
Consolidated Model Value Coordinator.

Merges:
- ValueDerivationService: builds a form's composite value from its children (upward)
- ValueDistributionService: routes an external nested value into children (downward)

Key features:
1. Mode-dispatched handlers via ModeServiceABC (_derive_GROUP, _distribute_ARRAY, ...)
2. Name resolution in group mode: controls first, child forms as fallback
3. Positional routing in array mode through Registry.ingest
"""

from __future__ import annotations
from typing import Any, Dict, List, TYPE_CHECKING
import logging

from pyqt_formsync.core.registry import Registry
from pyqt_formsync.exceptions import ShapeMismatch
from pyqt_formsync.forms.node_types import FormMode
from pyqt_formsync.protocols import FormNode
from .mode_service_abc import ModeServiceABC

if TYPE_CHECKING:
    from pyqt_formsync.forms.form import Form

logger = logging.getLogger(__name__)


class ValueDerivationService(ModeServiceABC):
    """Derive composite values bottom-up."""

    def _get_handler_prefix(self) -> str:
        return '_derive_'

    def derive_value(self, form: 'Form') -> Any:
        return self.dispatch(form.effective_mode, form)

    def value_of(self, node) -> Any:
        if isinstance(node, FormNode):
            return self.derive_value(node)
        return node.get_value()

    def _derive_GROUP(self, form: 'Form') -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        # Forms first so a control sharing a name overwrites the form's entry
        for child in form.forms():
            values[child.name] = self.derive_value(child)
        for control in form.controls():
            values[control.name] = control.get_value()
        return values

    def _derive_ARRAY(self, form: 'Form') -> List[Any]:
        return [self.value_of(member) for member in form.members()]


class ValueDistributionService(ModeServiceABC):
    """Route external values top-down."""

    def _get_handler_prefix(self) -> str:
        return '_distribute_'

    def distribute_value(self, form: 'Form', value: Any) -> None:
        """
        Push ``value`` into ``form`` and its descendants.

        None is a no-op. The first structured value fixes the form's mode.

        Raises:
            ShapeMismatch: ``value`` is not structured, or its shape conflicts
                with the form's established mode.
        """
        if value is None:
            return

        mode = self._adopt_shape(form, value)
        form._remember_model(value)
        form._debug(f"Distributing {mode.name.lower()} value to {len(form.members())} member(s).")
        self.dispatch(mode, form, value)

    def distribute_entry(self, form: 'Form', key: Any, value: Any) -> None:
        """Push a single entry (name or index) into ``form``."""
        mode = form.effective_mode
        if mode is FormMode.ARRAY:
            if not isinstance(key, int):
                raise ShapeMismatch(f"Array form \"{form.name}\" is addressed by index, got {key!r}.")
            if form.mode is None:
                form._set_mode(mode)
            form._remember_entry(key, value)
            members = form.members()
            if 0 <= key < len(members):
                self._route(members[key], value)
            return

        if form.mode is None:
            form._set_mode(FormMode.GROUP)
        form._remember_entry(key, value)
        self._distribute_GROUP(form, {key: value})

    def _adopt_shape(self, form: 'Form', value: Any) -> FormMode:
        shape = FormMode.of(value)
        if shape is None:
            raise ShapeMismatch(
                f"Form \"{form.name}\" expects a mapping or a sequence, got {type(value).__name__}."
            )
        if form.mode is None:
            form._set_mode(shape)
        elif form.mode is not shape:
            raise ShapeMismatch(
                f"Form \"{form.name}\" is in {form.mode.name.lower()} mode and cannot "
                f"accept a {shape.name.lower()} value."
            )
        return shape

    def _route(self, member, fragment: Any) -> None:
        if isinstance(member, FormNode):
            self.distribute_value(member, fragment)
        else:
            member.set_value(fragment)

    def _distribute_GROUP(self, form: 'Form', value: Dict[str, Any]) -> None:
        id_key = form.registry.id_key
        controls = Registry(id_key, form.controls())
        forms = Registry(id_key, form.forms())
        control_names = {str(name) for name in controls.pluck(id_key)}

        controls.ingest(
            lambda control, fragment: control.set_value(fragment),
            {key: fragment for key, fragment in value.items() if str(key) in control_names},
        )
        forms.ingest(
            self.distribute_value,
            {key: fragment for key, fragment in value.items() if str(key) not in control_names},
        )

    def _distribute_ARRAY(self, form: 'Form', value: List[Any]) -> None:
        form.registry.ingest(self._route, list(value))


class ModelValueCoordinator:
    """
    Facade over derivation and distribution.

    Examples:
        coordinator = ModelValueCoordinator()

        coordinator.derive_value(form)            # {"foo": "bar", "addresses": [...]}
        coordinator.distribute_value(form, data)  # stages values on matching controls
    """

    def __init__(self):
        self._derivation = ValueDerivationService()
        self._distribution = ValueDistributionService()

    def derive_value(self, form: 'Form') -> Any:
        return self._derivation.derive_value(form)

    def value_of(self, node) -> Any:
        return self._derivation.value_of(node)

    def distribute_value(self, form: 'Form', value: Any) -> None:
        self._distribution.distribute_value(form, value)

    def distribute_entry(self, form: 'Form', key: Any, value: Any) -> None:
        self._distribution.distribute_entry(form, key, value)

    def resolve(self, form: 'Form', key: Any):
        """
        Child addressed by ``key``: a name in group mode, an index in array mode.

        In group mode a control wins over a child form of the same name.
        """
        if form.effective_mode is FormMode.ARRAY:
            members = form.members()
            if isinstance(key, int) and 0 <= key < len(members):
                return members[key]
            return None
        return form.get_control(key) or form.get_form(key)
