"""
Mount protocol.

The widget layer calls ``mount`` when a control or sub-form widget attaches
and ``unmount`` when it detaches. The parent is always passed explicitly;
nothing here inspects the widget hierarchy.
"""

from collections.abc import Iterable
from typing import Any, List, Optional
import logging

from pyqt_formsync.exceptions import AmbiguousParent, InvalidConfiguration
from pyqt_formsync.protocols import ControlNode, FormNode, TreeNode

logger = logging.getLogger(__name__)


def resolve_parent(parent: Any) -> Optional[FormNode]:
    """
    Resolve the form a node mounts into.

    ``parent`` is a form, None, or an iterable of enclosing candidates found
    by the host. None entries and repeats of the same object are ignored.

    Raises:
        AmbiguousParent: More than one distinct candidate remains.
        InvalidConfiguration: The only candidate is not a form.
    """
    if parent is None or isinstance(parent, FormNode):
        return parent
    if isinstance(parent, (str, bytes)) or not isinstance(parent, Iterable):
        raise InvalidConfiguration(f"Cannot mount into {type(parent).__name__}; expected a form.")

    candidates: List[Any] = []
    for candidate in parent:
        if candidate is not None and not any(candidate is seen for seen in candidates):
            candidates.append(candidate)

    if len(candidates) > 1:
        names = [getattr(c, 'name', type(c).__name__) for c in candidates]
        raise AmbiguousParent(f"Expected at most one enclosing form, found {len(candidates)}: {names}.")
    if not candidates:
        return None
    if not isinstance(candidates[0], FormNode):
        raise InvalidConfiguration(
            f"Cannot mount into {type(candidates[0]).__name__}; expected a form."
        )
    return candidates[0]


def mount(node: TreeNode, parent: Any, index: Optional[int] = None) -> Optional[FormNode]:
    """
    Register ``node`` on its parent form.

    Mounting into the current parent again is a no-op; mounting into another
    form unmounts from the old one first.

    Args:
        node: Control or Form to mount.
        parent: Form, None, or an iterable of enclosing candidates.
        index: Registry position, for array rows inserted mid-list.

    Returns:
        The form ``node`` is mounted in, or None when there is no parent.
    """
    form = resolve_parent(parent)
    if form is None:
        logger.debug(f"No enclosing form for \"{node.name}\"; left unmounted")
        return None

    current = node.parent_form
    if current is form and node in form.registry:
        return form
    if current is not None:
        unmount(node)

    if isinstance(node, FormNode):
        form._register_form(node, index)
    elif isinstance(node, ControlNode):
        form._register_control(node, index)
    else:
        raise InvalidConfiguration(f"Cannot mount {type(node).__name__}; expected a control or a form.")
    return form


def unmount(node: TreeNode) -> None:
    """Deregister ``node`` from its parent form. No-op when it is not mounted."""
    form = node.parent_form
    if form is None:
        return
    form._unregister(node)
