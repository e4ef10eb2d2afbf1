"""
Validator binding and execution for a single control.

Binds the ``validators``/``async_validators`` mappings and the ordered
``errors`` table of a control's merged configuration, then evaluates them
whenever a value is committed.

Async validators return a ``concurrent.futures.Future`` resolving to a bool
(a plain bool counts as already settled). Every ``validate`` call bumps the
generation counter; a future that settles for an older generation is ignored.
Futures must be completed on the thread that owns the form tree.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Mapping
from concurrent.futures import Future
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, TYPE_CHECKING

from pyqt_formsync.exceptions import InvalidConfiguration
from pyqt_formsync.validators.configurable import ConfigurableValidator

if TYPE_CHECKING:
    from pyqt_formsync.forms.control import Control

logger = logging.getLogger(__name__)

# Keys a control configuration may carry
CONTROL_CONFIG_KEYS = frozenset({'validators', 'async_validators', 'errors', 'custom_error_message'})


def normalize_error_table(entries: Any) -> List[Tuple[str, Any]]:
    """
    Validate an ``errors`` table and drop repeated entries, keeping the first.

    Raises:
        InvalidConfiguration: The table is not a sequence of (key, message) pairs.
    """
    if entries is None:
        return []
    if isinstance(entries, (str, bytes, Mapping)) or not hasattr(entries, '__iter__'):
        raise InvalidConfiguration(f"errors must be a list of (key, message) pairs, got {entries!r}.")

    table: List[Tuple[str, Any]] = []
    for entry in entries:
        if isinstance(entry, (str, bytes)) or not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise InvalidConfiguration(f"Error table entries must be (key, message) pairs, got {entry!r}.")
        pair = (entry[0], entry[1])
        if pair not in table:
            table.append(pair)
    return table


class ValidatorResolver:
    """
    Validator state of one control.

    Attributes:
        generation: Incremented by every ``validate`` call.
        errors: Failing validator keys of the current generation.
        pending: Async validator keys still in flight for the current generation.
        error_table: Ordered (key, message) pairs.
    """

    def __init__(self, control: 'Control', on_settled: Optional[Callable[[], None]] = None):
        self._control_ref = weakref.ref(control)
        self._on_settled = on_settled
        self._validating = False

        self.generation = 0
        self.validators: Dict[str, Callable[[Any], Any]] = {}
        self.async_validators: Dict[str, Callable[[Any], Any]] = {}
        self.deferred: Set[str] = set()
        self.error_table: List[Tuple[str, Any]] = []
        self.errors: Dict[str, bool] = {}
        self.pending: Set[str] = set()

        # id(source) -> (source, form ref, predicate)
        self._configured: Dict[int, Tuple[ConfigurableValidator, Any, Callable]] = {}

    # ========== BINDING ==========

    def bind(self, config: Mapping) -> None:
        """
        Bind validators and the error table from a merged control configuration.

        Raises:
            InvalidConfiguration: Unknown keys, non-callable validators or a
                malformed error table.
        """
        unknown = set(config) - CONTROL_CONFIG_KEYS
        if unknown:
            raise InvalidConfiguration(
                f"Unknown control configuration keys: {sorted(unknown)}. "
                f"Valid keys: {sorted(CONTROL_CONFIG_KEYS)}."
            )

        self.deferred = set()
        self.validators = self._bind_group(config.get('validators'), 'validators')
        self.async_validators = self._bind_group(config.get('async_validators'), 'async_validators')
        self.error_table = normalize_error_table(config.get('errors'))

    def _bind_group(self, sources: Any, label: str) -> Dict[str, Callable[[Any], Any]]:
        if sources is None:
            return {}
        if not isinstance(sources, Mapping):
            raise InvalidConfiguration(f"{label} must be a mapping of name to predicate, got {sources!r}.")

        bound: Dict[str, Callable[[Any], Any]] = {}
        for name, source in sources.items():
            if source is False or source is None:
                continue
            if isinstance(source, ConfigurableValidator):
                predicate = self._configure(source)
                if predicate is None:
                    self.deferred.add(name)
                    continue
                bound[name] = predicate
            elif callable(source):
                bound[name] = source
            else:
                raise InvalidConfiguration(f"{label}[{name!r}] must be callable, got {type(source).__name__}.")
        return bound

    def _configure(self, source: ConfigurableValidator) -> Optional[Callable[[Any], Any]]:
        control = self._control_ref()
        form = control.parent_form if control is not None else None
        if form is None:
            return None

        cached = self._configured.get(id(source))
        if cached is not None and cached[0] is source and cached[1]() is form:
            return cached[2]

        predicate = source.configure(form, control)
        if not callable(predicate):
            raise InvalidConfiguration(f"{source!r} did not produce a callable validator.")
        self._configured[id(source)] = (source, weakref.ref(form), predicate)
        return predicate

    # ========== EXECUTION ==========

    def validate(self, value: Any) -> None:
        """
        Run every bound validator against ``value``.

        Async validators only run once every sync validator passes. Exceptions
        raised by sync predicates propagate.
        """
        self.generation += 1
        generation = self.generation
        self.errors = {}
        self.pending = set()

        self._validating = True
        try:
            for name, predicate in self.validators.items():
                if not predicate(value):
                    self.errors[name] = True

            if self.errors:
                return

            for name, predicate in self.async_validators.items():
                outcome = predicate(value)
                if isinstance(outcome, Future):
                    self.pending.add(name)
                    outcome.add_done_callback(partial(self._settle, name, generation))
                elif not outcome:
                    self.errors[name] = True
        finally:
            self._validating = False

    def invalidate(self) -> None:
        """Forget results and supersede in-flight async validators."""
        self.generation += 1
        self.errors = {}
        self.pending = set()

    def _settle(self, name: str, generation: int, future: Future) -> None:
        if generation != self.generation:
            logger.debug(
                f"Discarding async result for {name!r}: generation {generation} "
                f"superseded by {self.generation}"
            )
            return

        self.pending.discard(name)
        if future.cancelled():
            logger.debug(f"Async validator {name!r} was cancelled")
        elif future.exception() is not None:
            logger.warning(f"Async validator {name!r} failed: {future.exception()!r}")
            self.errors[name] = True
        elif not future.result():
            self.errors[name] = True

        if not self._validating and self._on_settled is not None:
            self._on_settled()

    # ========== MESSAGES ==========

    def first_message(self, failing: Mapping) -> Optional[Any]:
        """Message of the first table entry whose key is failing."""
        for key, message in self.error_table:
            if failing.get(key):
                return message
        return None
