"""
pyqt-formsync: headless form model for PyQt6.

Keeps a tree of named controls and nested forms synchronized with a plain
nested value (dicts and lists), aggregates validity and interaction state up
the tree and resolves which validation errors are visible.

Architecture:
- Tier 1 (Core): Registry, deep merge and background tasks, no form logic
- Tier 2 (Protocols): Node ABCs and FormConfig
- Tier 3 (Services): Value coordination, validation and change dispatch
- Tier 4 (Forms): Control and Form nodes with the mount protocol

Key Features:
- Group (by name) and array (by position) forms, inferred from the data
- One-shot downward distribution, upward derivation on every commit
- Batched commits: readers never observe a partial batch
- Async validators with stale-result discard
- Qt signals for every value and state change
"""

__version__ = "0.1.0"

from pyqt_formsync.exceptions import (
    FormSyncError,
    NonObjectInsert,
    NoIdKey,
    MemberMethodNotImplemented,
    AmbiguousParent,
    ShapeMismatch,
    InvalidConfiguration,
    SubmitInProgress,
)
from pyqt_formsync.core import Registry, merge_deep
from pyqt_formsync.protocols import FormConfig, get_form_config, set_form_config, parse_flags
from pyqt_formsync.forms.control import Control
from pyqt_formsync.forms.form import Form
from pyqt_formsync.forms.form_context import FormContext
from pyqt_formsync.forms.lifecycle import mount, unmount
from pyqt_formsync.forms.node_types import CUSTOM_ERROR_KEY, ControlState, FormMode, FormSummary
from pyqt_formsync.validators import ConfigurableValidator

__all__ = [
    "__version__",
    "FormSyncError",
    "NonObjectInsert",
    "NoIdKey",
    "MemberMethodNotImplemented",
    "AmbiguousParent",
    "ShapeMismatch",
    "InvalidConfiguration",
    "SubmitInProgress",
    "Registry",
    "merge_deep",
    "FormConfig",
    "get_form_config",
    "set_form_config",
    "parse_flags",
    "Control",
    "Form",
    "FormContext",
    "mount",
    "unmount",
    "CUSTOM_ERROR_KEY",
    "ControlState",
    "FormMode",
    "FormSummary",
    "ConfigurableValidator",
]
