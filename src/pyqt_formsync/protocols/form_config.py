"""Base configuration for form trees.

Process-wide defaults set by the application. Each root form snapshots the
defaults into its FormContext, and may override them.
"""

from typing import FrozenSet, Iterable, Optional, Union
from dataclasses import dataclass, replace
import re

from pyqt_formsync.exceptions import InvalidConfiguration

# Interaction flags a visibility policy may reference
ERROR_TRIGGER_FLAGS: FrozenSet[str] = frozenset({"touched", "dirty", "submitted"})


def parse_flags(flags: Union[str, Iterable[str], None]) -> Optional[FrozenSet[str]]:
    """
    Parse a visibility policy.

    Accepts a comma/space-delimited string or an iterable of flag names.
    Leading ``$`` is tolerated. ``None`` or an empty string means "no policy".

    Example:
        >>> sorted(parse_flags("touched, submitted"))
        ['submitted', 'touched']

    Raises:
        InvalidConfiguration: If an unknown flag is named.
    """
    if flags is None or flags == "":
        return None

    if isinstance(flags, str):
        names = [part for part in re.split(r"[,\s]+", flags) if part]
    else:
        names = list(flags)

    parsed = frozenset(name.lstrip("$") for name in names)
    unknown = parsed - ERROR_TRIGGER_FLAGS
    if unknown:
        raise InvalidConfiguration(
            f"Invalid show_errors_on flags: {sorted(unknown)}. "
            f"Valid flags: {sorted(ERROR_TRIGGER_FLAGS)}."
        )
    return parsed


@dataclass(frozen=True)
class FormConfig:
    """Configuration for form behavior.

    Attributes:
        show_errors_on: Interaction flags that make a failing control's errors
            visible. None shows errors whenever a control is invalid.
        id_key: Member attribute a form registry matches mapping keys against.
        debug: Log every form's lifecycle messages at INFO level.
    """

    show_errors_on: Optional[FrozenSet[str]] = None
    id_key: str = "name"
    debug: bool = False

    def __post_init__(self):
        if self.show_errors_on is not None and not isinstance(self.show_errors_on, frozenset):
            object.__setattr__(self, "show_errors_on", parse_flags(self.show_errors_on))

    def with_overrides(self, **overrides) -> 'FormConfig':
        """Copy with non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


# Global config instance (set by application)
_form_config: Optional[FormConfig] = None


def set_form_config(config: Optional[FormConfig]) -> None:
    """Set the default form configuration. Pass None to restore defaults.

    Args:
        config: FormConfig instance
    """
    global _form_config
    _form_config = config


def get_form_config() -> FormConfig:
    """Get the current default form configuration.

    Returns:
        Current FormConfig or default if not set
    """
    if _form_config is None:
        return FormConfig()
    return _form_config
