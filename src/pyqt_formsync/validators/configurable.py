"""Validators that need to know where they are mounted."""

from typing import Any, Callable


class ConfigurableValidator:
    """
    Deferred validator factory.

    ``configurator(form=..., control=...)`` is called once the owning control
    is mounted and must return the actual predicate. Use it for validators
    that depend on siblings or on the form itself.

    Example:
        def not_equal_to(other_name):
            def configurator(form, control):
                return lambda value: value != form.get_model_value(other_name)
            return ConfigurableValidator(configurator)
    """

    def __init__(self, configurator: Callable[..., Callable[[Any], Any]]):
        if not callable(configurator):
            raise TypeError(f"configurator must be callable, got {type(configurator).__name__}")
        self.configurator = configurator

    def configure(self, form, control) -> Callable[[Any], Any]:
        return self.configurator(form=form, control=control)

    def __repr__(self) -> str:
        return f"ConfigurableValidator({getattr(self.configurator, '__name__', self.configurator)!r})"
