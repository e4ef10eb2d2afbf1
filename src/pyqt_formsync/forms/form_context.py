"""
Per-tree context.

One FormContext is created for every root form and reached by every
descendant through ``node.context``. It replaces process-wide registries:
the id counter, the configuration snapshot, the staging area for values and
the services that run at commit time all live here.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from pyqt_formsync.protocols.form_config import FormConfig, get_form_config
from pyqt_formsync.services.flag_context_manager import FlagContextManager
from pyqt_formsync.services.model_value_coordinator import ModelValueCoordinator
from pyqt_formsync.services.validation_aggregator import ValidationAggregator
from pyqt_formsync.services.value_change_dispatcher import ValueChangeDispatcher, ValueChangeEvent

if TYPE_CHECKING:
    from pyqt_formsync.forms.control import Control

logger = logging.getLogger(__name__)


class FormContext:
    """
    Staging, commit and shared services for one form tree.

    Examples:
        with form.context.batch():
            form.get_control("first").set_value("Ada")
            form.get_control("last").set_value("Lovelace")
        # Both values applied, then one derivation/notification pass

        form.context.commit()  # Apply anything staged outside a batch
    """

    def __init__(self, config: Optional[FormConfig] = None):
        self.config = config if config is not None else get_form_config()
        self._next_id = 0
        # id(control) -> (control, value, from_view)
        self._staged: Dict[int, Tuple['Control', Any, bool]] = {}
        self._batch_depth = 0
        self._in_commit = False

        self.coordinator = ModelValueCoordinator()
        self.aggregator = ValidationAggregator()
        self.dispatcher = ValueChangeDispatcher(self.coordinator)

    def next_id(self) -> int:
        self._next_id += 1
        return self._next_id

    @property
    def in_batch(self) -> bool:
        return self._batch_depth > 0

    @property
    def has_staged(self) -> bool:
        return bool(self._staged)

    # ========== STAGING ==========

    def stage(self, control: 'Control', value: Any, from_view: bool = False) -> None:
        """
        Stage ``value`` for ``control``.

        Outside a batch the value is committed immediately. The latest value
        staged for a control wins; ``from_view`` is sticky within a batch.
        """
        previous = self._staged.pop(id(control), None)
        if previous is not None:
            from_view = from_view or previous[2]
        self._staged[id(control)] = (control, value, from_view)

        if not self.in_batch:
            self.commit()

    def discard(self, control: 'Control') -> None:
        """Drop a staged value that has not been committed yet."""
        self._staged.pop(id(control), None)

    @contextmanager
    def batch(self):
        """Group staged writes into one commit. Nested batches commit once, at the outermost exit."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0:
            self.commit()

    # ========== COMMIT ==========

    def commit(self) -> None:
        """
        Apply every staged value, then run one derivation/notification pass.

        A commit requested from a listener during that pass runs after it.

        A validator raising while a value is applied does not stop the batch:
        the remaining values are applied and dispatched, then the first
        exception is re-raised.
        """
        if self._in_commit:
            logger.debug("Commit requested during dispatch; deferred to the running commit")
            return

        failure: Optional[Exception] = None
        with FlagContextManager.commit_context(self):
            while self.has_staged:
                staged, self._staged = self._staged, {}
                events: List[ValueChangeEvent] = []
                for control, value, from_view in staged.values():
                    try:
                        control._apply_value(value, from_view)
                    except Exception as e:
                        logger.warning(f"Validating \"{control.name}\" raised {e!r}; committing the rest of the batch")
                        if failure is None:
                            failure = e
                    events.append(ValueChangeEvent(control, control.get_value(), from_view))
                logger.debug(f"Committed {len(events)} staged value(s)")
                self.dispatcher.dispatch(events)

        if failure is not None:
            raise failure
