"""
Node protocol definitions and configuration hooks.

ABC-based node contracts that eliminate duck typing in favor of
explicit, fail-loud inheritance-based architecture.
"""

from .node_protocols import (
    ModelValueGettable,
    ModelValueSettable,
    Configurable,
    Resettable,
    CustomErrorCapable,
    Disableable,
    TreeNode,
    ControlNode,
    FormNode,
)
from .form_config import (
    ERROR_TRIGGER_FLAGS,
    FormConfig,
    parse_flags,
    set_form_config,
    get_form_config,
)

__all__ = [
    "ModelValueGettable",
    "ModelValueSettable",
    "Configurable",
    "Resettable",
    "CustomErrorCapable",
    "Disableable",
    "TreeNode",
    "ControlNode",
    "FormNode",
    "ERROR_TRIGGER_FLAGS",
    "FormConfig",
    "parse_flags",
    "set_form_config",
    "get_form_config",
]
