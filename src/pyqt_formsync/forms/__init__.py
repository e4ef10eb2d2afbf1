"""
Form tree nodes and the mount protocol.

Control and Form nodes, the per-tree FormContext and the ``mount``/``unmount``
entry points used by widget layers.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .control import Control
    from .form import Form
    from .form_context import FormContext
    from .lifecycle import mount, unmount, resolve_parent
    from .node_types import CUSTOM_ERROR_KEY, ControlState, FormMode, FormSummary

_EXPORTS = {
    "Control": ("pyqt_formsync.forms.control", "Control"),
    "Form": ("pyqt_formsync.forms.form", "Form"),
    "FormContext": ("pyqt_formsync.forms.form_context", "FormContext"),
    "mount": ("pyqt_formsync.forms.lifecycle", "mount"),
    "unmount": ("pyqt_formsync.forms.lifecycle", "unmount"),
    "resolve_parent": ("pyqt_formsync.forms.lifecycle", "resolve_parent"),
    "CUSTOM_ERROR_KEY": ("pyqt_formsync.forms.node_types", "CUSTOM_ERROR_KEY"),
    "ControlState": ("pyqt_formsync.forms.node_types", "ControlState"),
    "FormMode": ("pyqt_formsync.forms.node_types", "FormMode"),
    "FormSummary": ("pyqt_formsync.forms.node_types", "FormSummary"),
}


def __getattr__(name: str):
    if name in _EXPORTS:
        module_name, attr = _EXPORTS[name]
        module = importlib.import_module(module_name)
        value = getattr(module, attr)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = list(_EXPORTS)
