"""
Common validators.

Every validator takes the committed value and returns a bool, so any of them
can be used in a control's ``validators`` mapping:

    form.configure({
        "age": {"validators": {"required": required, "min": min_value(18)}},
        "confirm": {"validators": {"match": match("password")}},
    })
"""

import logging
import re
from typing import Any, Callable, Pattern, Union

from .configurable import ConfigurableValidator

logger = logging.getLogger(__name__)

Validator = Callable[[Any], bool]

EMAIL_PATTERN = re.compile(
    r'^(([^<>()\[\]\\.,;:\s@"]+(\.[^<>()\[\]\\.,;:\s@"]+)*)|(".+"))'
    r'@((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$'
)


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def required(value: Any) -> bool:
    """True unless the value is None or an empty string."""
    return value is not None and value != ""


def _compare(limit: Any, check: Callable[[float, float], bool]) -> Validator:
    def _validator(value: Any) -> bool:
        try:
            return check(float(value), float(limit))
        except (TypeError, ValueError):
            return False
    return _validator


def min_value(limit: Union[int, float]) -> Validator:
    """Value is a number greater than or equal to ``limit``."""
    return _compare(limit, lambda number, bound: number >= bound)


def max_value(limit: Union[int, float]) -> Validator:
    """Value is a number less than or equal to ``limit``."""
    return _compare(limit, lambda number, bound: number <= bound)


def min_length(length: int) -> Validator:
    """Text form of the value has at least ``length`` characters."""
    return lambda value: len(_as_text(value)) >= int(length)


def max_length(length: int) -> Validator:
    """Text form of the value has at most ``length`` characters."""
    return lambda value: len(_as_text(value)) <= int(length)


def email(value: Any) -> bool:
    return bool(EMAIL_PATTERN.match(_as_text(value)))


def pattern(regex: Union[str, Pattern]) -> Validator:
    """Text form of the value contains a match for ``regex``."""
    compiled = re.compile(regex) if isinstance(regex, str) else regex
    return lambda value: bool(compiled.search(_as_text(value)))


def match(control_name: str) -> ConfigurableValidator:
    """
    Value equals the value of sibling control ``control_name``.

    The validating control re-validates whenever the sibling commits a value.
    """
    def configurator(form, control) -> Validator:
        if control_name == control.name:
            logger.debug(f"[{form.name}] Control \"{control.name}\" is trying to match itself.")
            return lambda value: True

        def on_sibling_changed(name: str, _value: Any) -> None:
            if name == control_name and control.parent_form is form:
                control._revalidate()

        form.control_value_changed.connect(on_sibling_changed)

        def _validator(value: Any) -> bool:
            sibling = form.get_control(control_name)
            return sibling is not None and sibling.get_value() == value

        return _validator

    return ConfigurableValidator(configurator)
