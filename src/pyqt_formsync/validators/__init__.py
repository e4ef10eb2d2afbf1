"""
Validators for control configuration.

Plain predicates, factories returning predicates, and ConfigurableValidator
for validators that need the form they are mounted in.
"""

from .configurable import ConfigurableValidator
from .builtin import (
    EMAIL_PATTERN,
    required,
    min_value,
    max_value,
    min_length,
    max_length,
    email,
    pattern,
    match,
)
from pyqt_formsync.core.background_task import background_validator

__all__ = [
    "ConfigurableValidator",
    "EMAIL_PATTERN",
    "required",
    "min_value",
    "max_value",
    "min_length",
    "max_length",
    "email",
    "pattern",
    "match",
    "background_validator",
]
