"""
Abstract base class for services that dispatch on a form's mode.

Pattern:
    Instead of:
        class MyService:
            def process(self, form):
                if form.mode is FormMode.GROUP:
                    # handle keyed children
                else:
                    # handle positional children

    Use:
        class MyService(ModeServiceABC):
            def _get_handler_prefix(self) -> str:
                return '_process_'

            def _process_GROUP(self, form, ...):
                ...

            def _process_ARRAY(self, form, ...):
                ...

Adding a new FormMode member means adding a handler to every service; a
missing handler fails loudly at construction.
"""

from typing import Dict, Callable, Any
from abc import ABC, abstractmethod
import logging

from pyqt_formsync.forms.node_types import FormMode

logger = logging.getLogger(__name__)


class ModeServiceABC(ABC):
    """
    Abstract base for mode-dispatched services.

    Subclasses must:
    1. Implement _get_handler_prefix() to return method prefix (e.g., '_derive_')
    2. Define one handler per FormMode member: {prefix}{MODE_NAME}
    """

    def __init__(self):
        self._handlers: Dict[FormMode, Callable] = {}
        prefix = self._get_handler_prefix()

        for mode in FormMode:
            handler = getattr(self, f"{prefix}{mode.name}", None)
            if handler is None:
                raise TypeError(
                    f"{type(self).__name__} is missing handler {prefix}{mode.name}"
                )
            self._handlers[mode] = handler

        logger.debug(
            f"{type(self).__name__} discovered handlers: {[m.name for m in self._handlers]}"
        )

    @abstractmethod
    def _get_handler_prefix(self) -> str:
        """Return the method prefix used for handler discovery."""
        pass

    def dispatch(self, mode: FormMode, *args, **kwargs) -> Any:
        """Invoke the handler registered for ``mode``."""
        return self._handlers[mode](*args, **kwargs)
