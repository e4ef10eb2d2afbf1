"""
Node ABC contracts for form trees.

Defines the explicit capabilities that controls and forms implement, so that
parent discovery and data routing never rely on duck typing.

Design Philosophy:
- Explicit inheritance over duck typing
- Fail-loud over fail-silent
- Multiple inheritance for composable capabilities

Methods prefixed with ``_register``/``_unregister`` are the internal mount
protocol. Hosts call ``pyqt_formsync.forms.mount``/``unmount`` instead.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class ModelValueGettable(ABC):
    """ABC for nodes that expose a model value."""

    @abstractmethod
    def get_model_values(self) -> Any:
        """
        Get the node's current committed model value.

        Returns:
            A scalar for controls, a dict or list for forms.
        """
        pass


class ModelValueSettable(ABC):
    """ABC for nodes that accept an externally supplied model value."""

    @abstractmethod
    def set_model_values(self, value: Any) -> None:
        """
        Push a value (or nested value) into the node.

        Args:
            value: The value to apply. Forms route fragments to children.
        """
        pass


class Configurable(ABC):
    """ABC for nodes that accept control configuration."""

    @abstractmethod
    def configure(self, config: Any = None) -> None:
        """
        Merge ``config`` into the node's configuration and re-apply it.

        Args:
            config: Mapping for controls and group forms, list for array forms.
        """
        pass


class Resettable(ABC):
    """ABC for nodes that can return to an untouched, pristine state."""

    @abstractmethod
    def reset(self, value: Any = None) -> None:
        pass


class CustomErrorCapable(ABC):
    """ABC for nodes that accept server-side error feedback."""

    @abstractmethod
    def set_custom_error_message(self, message: Any) -> None:
        """
        Apply a custom error message (or nested mapping/list for forms).
        """
        pass

    @abstractmethod
    def clear_custom_error_message(self) -> None:
        pass


class Disableable(ABC):
    """ABC for nodes that can be disabled."""

    @abstractmethod
    def is_disabled(self) -> bool:
        pass

    @abstractmethod
    def enable(self) -> None:
        pass

    @abstractmethod
    def disable(self) -> None:
        pass


class TreeNode(ModelValueGettable, ModelValueSettable, Configurable, Resettable,
               CustomErrorCapable, Disableable):
    """Capabilities shared by every node that can be mounted into a form."""

    name: str

    @property
    @abstractmethod
    def parent_form(self) -> Optional['FormNode']:
        """The owning form, or None for a root or unmounted node."""
        pass

    @abstractmethod
    def _attach(self, parent: Optional['FormNode']) -> None:
        """Record (or clear) the owning form. Called by the mount protocol."""
        pass


class ControlNode(TreeNode):
    """Leaf node holding a single value."""

    @abstractmethod
    def get_value(self) -> Any:
        pass

    @abstractmethod
    def set_value(self, value: Any) -> None:
        pass

    @abstractmethod
    def get_errors(self) -> Optional[dict]:
        pass


class FormNode(TreeNode):
    """Container node holding controls and child forms."""

    @abstractmethod
    def _register_control(self, control: ControlNode, index: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def _register_form(self, form: 'FormNode', index: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def _unregister(self, node: TreeNode) -> None:
        """Remove ``node`` from the registry. No-op if it is not registered."""
        pass
