"""
Container node of a form tree.

A Form keeps its mounted controls and child forms in a Registry and operates
in one of two modes:

- GROUP: children addressed by name, composite value is a dict
- ARRAY: children addressed by position, composite value is a list

The mode is fixed by the first value fed to the form, or given explicitly.
"""

from __future__ import annotations

import copy
import itertools
import logging
import weakref
from collections.abc import Mapping
from concurrent.futures import Future
from typing import Any, Callable, List, Optional, Union

from PyQt6.QtCore import QObject, pyqtSignal

from pyqt_formsync.core.merge import merge_deep
from pyqt_formsync.core.registry import Registry
from pyqt_formsync.exceptions import InvalidConfiguration, SubmitInProgress
from pyqt_formsync.protocols import ControlNode, FormNode, TreeNode
from pyqt_formsync.protocols.form_config import get_form_config, parse_flags
from pyqt_formsync.services.flag_context_manager import FlagContextManager, FormFlag
from pyqt_formsync.services.signal_service import SignalService
from .control import Control
from .form_context import FormContext
from .node_types import FormMode, FormSummary, _CombinedMeta

logger = logging.getLogger(__name__)

_MISSING = object()
_form_names = itertools.count(1)

SubmitHandler = Callable[[Any], Union[None, Mapping, list, Future]]


class Form(QObject, FormNode, metaclass=_CombinedMeta):
    """
    A group or array of controls and child forms.

    Signals:
        value_changed(str, object): Emitted by the root form for every committed
            control value, with the control's dotted path ("addresses.1.name").
        model_values_changed(object): Emitted with the re-derived composite value.
        control_value_changed(str, object): Emitted when a direct child control commits.
        state_changed(): Emitted when validity or interaction flags may have changed.

    Example:
        form = Form("signup")
        mount(Control("email"), form)
        mount(Control("password"), form)

        form.set_model_values({"email": "ada@example.com"})
        form.get_model_values()  # {"email": "ada@example.com", "password": None}
    """

    value_changed = pyqtSignal(str, object)
    model_values_changed = pyqtSignal(object)
    control_value_changed = pyqtSignal(str, object)
    state_changed = pyqtSignal()

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        mode: Union[FormMode, str, None] = None,
        config: Any = None,
        show_errors_on: Any = None,
        id_key: Optional[str] = None,
        debug: Optional[bool] = None,
    ):
        super().__init__()
        self.name = name or f"Form-{next(_form_names)}"

        defaults = get_form_config()
        self._own_context = FormContext(defaults.with_overrides(id_key=id_key, debug=debug))
        self.registry = Registry(self._own_context.config.id_key)
        self.debug = self._own_context.config.debug

        self._mode: Optional[FormMode] = FormMode(mode) if mode is not None else None
        self._show_errors_on = parse_flags(show_errors_on) if show_errors_on is not None else _MISSING
        self._parent_ref: Optional[weakref.ref] = None

        self._model: Any = None
        self._config_layer: Any = None
        self._inherited_layer: Any = None

        self._submitted = False
        self._submitting = False
        self._disabled = False

        # Flags managed by FlagContextManager
        self._in_distribute = False

        if config is not None:
            self.configure(config)

    def __repr__(self) -> str:
        mode = self._mode.name if self._mode else None
        return f"Form(name={self.name!r}, mode={mode}, members={len(self.registry)})"

    def _debug(self, message: str) -> None:
        if self.debug:
            logger.info(f"[{self.name}] {message}")
        else:
            logger.debug(f"[{self.name}] {message}")

    # ========== TREE ==========

    @property
    def parent_form(self) -> Optional['Form']:
        return self._parent_ref() if self._parent_ref is not None else None

    def root_form(self) -> 'Form':
        root = self
        while root.parent_form is not None:
            root = root.parent_form
        return root

    @property
    def context(self) -> FormContext:
        """Context of the tree: owned by the root form."""
        return self.root_form()._own_context

    def _attach(self, parent: Optional['Form']) -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None
        if parent is None and self._inherited_layer is not None:
            self._inherited_layer = None
            self._apply_config()

    def members(self) -> List[TreeNode]:
        return self.registry.members

    def controls(self) -> List[Control]:
        return self.registry.filter(lambda member: isinstance(member, ControlNode))

    def forms(self) -> List['Form']:
        return self.registry.filter(lambda member: isinstance(member, FormNode))

    def get_control(self, name: str) -> Optional[Control]:
        """Control named ``name``; the newest registration wins."""
        return next((c for c in reversed(self.controls()) if c.name == name), None)

    def get_form(self, name: str) -> Optional['Form']:
        """Child form named ``name``; the newest registration wins."""
        return next((f for f in reversed(self.forms()) if f.name == name), None)

    def _descendant_forms(self) -> List['Form']:
        found: List['Form'] = []
        stack = list(reversed(self.forms()))
        while stack:
            form = stack.pop()
            found.append(form)
            stack.extend(reversed(form.forms()))
        return found

    # ========== MODE ==========

    @property
    def mode(self) -> Optional[FormMode]:
        """FormMode once determined, else None."""
        return self._mode

    @property
    def effective_mode(self) -> FormMode:
        """Mode used for derivation; an undetermined form behaves as a group."""
        return self._mode or FormMode.GROUP

    def _set_mode(self, mode: FormMode) -> None:
        self._debug(f"Mode set to {mode.name.lower()}.")
        self._mode = mode

    # ========== REGISTRATION ==========

    def _register_control(self, control: ControlNode, index: Optional[int] = None) -> None:
        if control in self.registry:
            return
        self._warn_duplicate(control)
        self._debug(f"Registering control \"{control.name}\".")

        self.registry.insert(control, index)
        control._attach(self)
        control._set_form_layer(self._layer_for(control), revalidate=False)

        entry = self._model_entry_for(control)
        control.set_value(control.get_value() if entry is _MISSING else entry)

    def _register_form(self, form: FormNode, index: Optional[int] = None) -> None:
        if form in self.registry:
            return
        if form is self or any(self is child for child in form._descendant_forms()):
            raise InvalidConfiguration(f"Cannot mount form \"{form.name}\" inside itself.")
        self._warn_duplicate(form)
        self._debug(f"Registering child form \"{form.name}\".")

        self.registry.insert(form, index)
        form._attach(self)
        form._set_form_layer(self._layer_for(form))

        entry = self._model_entry_for(form)
        if entry is _MISSING or entry is None:
            self.context.dispatcher.dispatch_structure(self)
            return
        with self.context.batch():
            self.context.coordinator.distribute_value(form, entry)

    def _unregister(self, node: TreeNode) -> None:
        if node not in self.registry:
            return
        self._debug(f"Unregistering \"{node.name}\".")

        self.registry.remove(node)
        if isinstance(node, ControlNode):
            self.context.discard(node)
        node._attach(None)
        self.context.dispatcher.dispatch_structure(self)

    def _warn_duplicate(self, node: TreeNode) -> None:
        if self._mode is not FormMode.GROUP:
            return
        kind = ControlNode if isinstance(node, ControlNode) else FormNode
        if self.registry.find(lambda m: isinstance(m, kind) and m.name == node.name):
            logger.warning(
                f"[{self.name}] \"{node.name}\" is already registered; the newest registration wins lookups."
            )

    # ========== MODEL SNAPSHOT ==========

    def _remember_model(self, value: Any) -> None:
        self._model = copy.deepcopy(dict(value) if isinstance(value, Mapping) else list(value))

    def _remember_entry(self, key: Any, value: Any) -> None:
        if self.effective_mode is FormMode.ARRAY:
            model = list(self._model) if isinstance(self._model, list) else []
            model.extend([None] * (key + 1 - len(model)))
            model[key] = copy.deepcopy(value)
        else:
            model = dict(self._model) if isinstance(self._model, Mapping) else {}
            model[key] = copy.deepcopy(value)
        self._model = model

    def _model_entry_for(self, node: TreeNode) -> Any:
        """Snapshot entry for ``node`` by name or position, or _MISSING."""
        if isinstance(self._model, Mapping):
            return copy.deepcopy(self._model[node.name]) if node.name in self._model else _MISSING
        if isinstance(self._model, list):
            index = self.registry.index_of(node)
            return copy.deepcopy(self._model[index]) if 0 <= index < len(self._model) else _MISSING
        return _MISSING

    # ========== MODEL VALUES ==========

    def get_model_values(self) -> Any:
        """Composite value derived from committed child values."""
        return self.context.coordinator.derive_value(self)

    def set_model_values(self, value: Any) -> None:
        """
        Distribute ``value`` into the subtree in one batch.

        A call issued by a listener while this tree is already distributing
        is ignored.

        Raises:
            ShapeMismatch: ``value`` conflicts with the form's mode.
        """
        self._distribute(lambda: self.context.coordinator.distribute_value(self, value))

    def get_model_value(self, key: Union[str, int]) -> Any:
        """Value of the child addressed by name (group) or index (array)."""
        node = self.context.coordinator.resolve(self, key)
        if node is None:
            return None
        return self.context.coordinator.value_of(node)

    def set_model_value(self, key: Union[str, int], value: Any) -> None:
        """Distribute ``value`` to the single child addressed by ``key``."""
        self._distribute(lambda: self.context.coordinator.distribute_entry(self, key, value))

    def _distribute(self, operation: Callable[[], None]) -> None:
        root = self.root_form()
        if FlagContextManager.is_flag_set(root, FormFlag.IN_DISTRIBUTE):
            logger.warning(f"[{self.name}] Ignoring model value write issued during distribution.")
            return

        with FlagContextManager.distribute_context(root):
            with self.context.batch():
                operation()

    # ========== CONFIGURATION ==========

    def configure(self, config: Any = None) -> None:
        """
        Configure descendants by name (mapping) or position (list).

        Mappings merge into earlier configuration; a list replaces it.

        Raises:
            InvalidConfiguration: ``config`` is not structured or conflicts with the mode.
        """
        if config is None:
            return
        shape = FormMode.of(config)
        if shape is None:
            raise InvalidConfiguration(
                f"Form \"{self.name}\" config must be a mapping or a list, got {type(config).__name__}."
            )
        if self._mode is not None and shape is not self._mode:
            raise InvalidConfiguration(
                f"Form \"{self.name}\" is in {self._mode.name.lower()} mode and cannot take "
                f"{shape.name.lower()} configuration."
            )

        if shape is FormMode.ARRAY:
            self._config_layer = list(config)
        else:
            base = self._config_layer if isinstance(self._config_layer, Mapping) else {}
            self._config_layer = merge_deep(base, config)
        self._apply_config()

    def _set_form_layer(self, layer: Any, revalidate: bool = True) -> None:
        self._inherited_layer = layer
        self._apply_config(revalidate)

    def _effective_layer(self) -> Any:
        own, inherited = self._config_layer, self._inherited_layer
        if own is None:
            return inherited
        if inherited is None:
            return own
        if isinstance(own, Mapping) and isinstance(inherited, Mapping):
            return merge_deep(own, inherited)
        return inherited

    def _layer_for(self, node: TreeNode) -> Any:
        layer = self._effective_layer()
        if isinstance(layer, Mapping):
            return layer.get(node.name)
        if isinstance(layer, list):
            index = self.registry.index_of(node)
            return layer[index] if 0 <= index < len(layer) else None
        return None

    def _apply_config(self, revalidate: bool = True) -> None:
        for member in self.members():
            member._set_form_layer(self._layer_for(member), revalidate)

    def show_errors_on(self):
        """Visibility policy: this form's override, else the parent's, else the tree default."""
        if self._show_errors_on is not _MISSING:
            return self._show_errors_on
        parent = self.parent_form
        if parent is not None:
            return parent.show_errors_on()
        return self.context.config.show_errors_on

    # ========== STATE ==========

    @property
    def summary(self) -> FormSummary:
        return self.context.aggregator.summarize(self)

    @property
    def valid(self) -> bool:
        return self.summary.valid

    @property
    def invalid(self) -> bool:
        return self.summary.invalid

    @property
    def pending(self) -> bool:
        return self.summary.pending

    @property
    def touched(self) -> bool:
        return self.summary.touched

    @property
    def dirty(self) -> bool:
        return self.summary.dirty

    @property
    def submitted(self) -> bool:
        return self.is_submitted()

    @property
    def submitting(self) -> bool:
        return self._submitting

    def is_submitted(self) -> bool:
        if self._submitted:
            return True
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

    # ========== CUSTOM ERRORS ==========

    def set_custom_error_message(self, message: Any) -> None:
        """
        Apply custom errors by name (mapping) or position (list) to descendants.

        Example:
            form.set_custom_error_message({"email": "Already registered.",
                                           "addresses": [{"zip": "Unknown zip code."}]})

        Raises:
            InvalidConfiguration: ``message`` is not structured or conflicts with the mode.
        """
        if message is None:
            return
        shape = FormMode.of(message)
        if shape is None or (self._mode is not None and shape is not self._mode):
            expected = self._mode.name.lower() if self._mode else "group or array"
            raise InvalidConfiguration(
                f"Form \"{self.name}\" expects {expected} custom errors, got {type(message).__name__}."
            )
        self._debug("Applying custom error messages.")
        self.registry.ingest(lambda member, fragment: member.set_custom_error_message(fragment), message)

    def clear_custom_error_message(self) -> None:
        for member in self.members():
            member.clear_custom_error_message()

    # ========== RESET ==========

    def reset(self, values: Any = None) -> None:
        """
        Mark every descendant untouched and pristine, clear submitted flags and
        revalidate. ``values``, when given, is distributed afterwards.
        """
        controls = self.context.aggregator.descendant_controls(self)
        forms = [self] + self._descendant_forms()

        with self.context.batch():
            with SignalService.block_signals(*controls, *forms):
                for control in controls:
                    control.reset()
                for form in forms:
                    form._submitted = False
        if values is not None:
            self.set_model_values(values)

        self._debug("Reset.")
        self.context.dispatcher.dispatch_state(self)

    # ========== SUBMIT ==========

    def submit(self, handler: Optional[SubmitHandler] = None) -> Future:
        """
        Submit the form.

        Clears custom errors, marks the form submitted and disables it, waits
        for pending async validators, then calls ``handler(model_values)`` if
        the form is valid. The handler may return custom errors (a mapping, a
        list or a Future resolving to one), which are applied to descendants.

        Returns:
            A Future resolving to True when the handler ran and reported no
            custom errors, False otherwise. Exceptions raised by the handler
            are set on the future.

        Raises:
            SubmitInProgress: A previous submit has not finished.
        """
        if self._submitting:
            self._debug("Submit already in progress.")
            raise SubmitInProgress(f"Form \"{self.name}\" is already submitting.")

        future: Future = Future()
        future.set_running_or_notify_cancel()

        self.clear_custom_error_message()
        self._submitted = True
        self._submitting = True
        self.disable()

        self._when_settled(lambda: self._run_submit_handler(handler, future))
        return future

    def _when_settled(self, callback: Callable[[], None]) -> None:
        if not self.pending:
            callback()
            return

        self._debug("Waiting for async validators.")

        def _check():
            if not self.pending:
                self.state_changed.disconnect(_check)
                callback()

        self.state_changed.connect(_check)

    def _run_submit_handler(self, handler: Optional[SubmitHandler], future: Future) -> None:
        try:
            if self.invalid:
                self._debug("Form is invalid; submit handler not called.")
                self._finish_submit(future, False)
                return
            if handler is None:
                self._finish_submit(future, True)
                return
            outcome = handler(self.get_model_values())
        except Exception as e:
            self._finish_submit(future, error=e)
            return

        if isinstance(outcome, Future):
            outcome.add_done_callback(lambda done: self._apply_handler_future(done, future))
        else:
            self._apply_custom_errors(outcome, future)

    def _apply_handler_future(self, done: Future, future: Future) -> None:
        if done.cancelled():
            self._apply_custom_errors(None, future)
        elif done.exception() is not None:
            self._finish_submit(future, error=done.exception())
        else:
            self._apply_custom_errors(done.result(), future)

    def _apply_custom_errors(self, custom_errors: Any, future: Future) -> None:
        try:
            self.set_custom_error_message(custom_errors)
        except Exception as e:
            self._finish_submit(future, error=e)
            return
        self._finish_submit(future, not custom_errors)

    def _finish_submit(self, future: Future, result: bool = False, error: Optional[BaseException] = None) -> None:
        self._submitting = False
        self.enable()
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)
