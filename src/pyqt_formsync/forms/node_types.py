"""
Shared node types: form modes, state snapshots and the QObject/ABC metaclass.
"""

from abc import ABCMeta
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from PyQt6.QtCore import QObject

# Error key reserved for server-side feedback set on a control
CUSTOM_ERROR_KEY = '$custom'


class FormMode(Enum):
    """Addressing scheme of a form's children."""
    GROUP = 'group'  # by name, composite value is a dict
    ARRAY = 'array'  # by position, composite value is a list

    @classmethod
    def of(cls, value: Any) -> Optional['FormMode']:
        """Mode implied by the shape of ``value``; None for non-structured values."""
        if isinstance(value, Mapping):
            return cls.GROUP
        if isinstance(value, (list, tuple)):
            return cls.ARRAY
        return None


@dataclass(frozen=True)
class ControlState:
    """Snapshot of a control's interaction and validity flags."""
    touched: bool = False
    dirty: bool = False
    submitted: bool = False
    pending: bool = False
    valid: bool = True

    def has_flag(self, flag: str) -> bool:
        return bool(getattr(self, flag))


@dataclass(frozen=True)
class FormSummary:
    """Aggregate of descendant control flags for a form."""
    valid: bool = True
    pending: bool = False
    touched: bool = False
    dirty: bool = False
    submitted: bool = False

    @property
    def invalid(self) -> bool:
        return not self.valid


class _CombinedMeta(ABCMeta, type(QObject)):
    """Combined metaclass for ABC + PyQt6 QObject."""
    pass
