"""
Ordered member registry with data ingestion.

Pure collection algebra with no knowledge of forms. Forms keep their mounted
children in a Registry and use ``ingest`` to route fragments of a nested value
to the members they belong to.

Matching rules for ``ingest``:
- List or tuple data is matched to members strictly by position. ``id_key`` is
  ignored and a length mismatch leaves the surplus unmatched.
- Mapping data is matched by comparing ``str(key)`` with ``str(member.<id_key>)``.
  Every matching member is visited, so rows sharing a logical name all receive
  the fragment.
"""

from collections.abc import Mapping
from functools import partial
from typing import Any, Callable, Dict, Iterator, List, Optional
import logging

from pyqt_formsync.exceptions import MemberMethodNotImplemented, NoIdKey, NonObjectInsert, ShapeMismatch

logger = logging.getLogger(__name__)

# Values that are never accepted as registry members
_PRIMITIVE_TYPES = (str, bytes, bytearray, int, float, complex, bool, type(None))

_MISSING = object()


def read_member_key(member: Any, key: str) -> Any:
    """Read ``key`` from a mapping member or an attribute from any other member."""
    if isinstance(member, Mapping):
        return member.get(key)
    return getattr(member, key, None)


class Registry:
    """
    Ordered, mutable collection of opaque members.

    Examples:
        registry = Registry(id_key="name")
        registry.insert({"name": "foo", "value": 12})
        registry.insert({"name": "bar", "value": 24})

        registry.to_map(lambda m: m["value"])  # {"foo": 12, "bar": 24}

        set_values = registry.ingest(lambda member, value: member.update(value=value))
        set_values({"foo": 10})
    """

    def __init__(self, id_key: Optional[str] = None, members: Optional[List[Any]] = None):
        self.id_key = id_key
        self._members: List[Any] = []
        for member in members or ():
            self.insert(member)

    def __repr__(self) -> str:
        return f"Registry(id_key={self.id_key!r}, size={len(self._members)})"

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._members))

    def __contains__(self, member: Any) -> bool:
        return any(existing is member for existing in self._members)

    @property
    def members(self) -> List[Any]:
        """Snapshot of members in registry order."""
        return list(self._members)

    def index_of(self, member: Any) -> int:
        """Position of ``member`` by identity, or -1."""
        for index, existing in enumerate(self._members):
            if existing is member:
                return index
        return -1

    # ========== MUTATION ==========

    def insert(self, member: Any, index: Optional[int] = None) -> None:
        """Append ``member``, or insert it at ``index``."""
        if isinstance(member, _PRIMITIVE_TYPES):
            raise NonObjectInsert(
                f"Registry members must be structured values, got {type(member).__name__}."
            )
        if index is None:
            self._members.append(member)
        else:
            self._members.insert(index, member)

    def remove_with(self, predicate: Callable[[Any], bool]) -> None:
        """Remove every member satisfying ``predicate``; survivors keep their order."""
        self._members = [member for member in self._members if not predicate(member)]

    def remove(self, member: Any) -> None:
        """Remove ``member`` by identity."""
        self.remove_with(lambda existing: existing is member)

    # ========== LOOKUP & PROJECTION ==========

    def find(self, predicate: Callable[[Any], bool]) -> Optional[Any]:
        """First member satisfying ``predicate``, in registry order."""
        return next((member for member in self._members if predicate(member)), None)

    def filter(self, predicate: Callable[[Any], bool]) -> List[Any]:
        return [member for member in self._members if predicate(member)]

    def map(self, fn: Callable[[Any], Any]) -> List[Any]:
        return [fn(member) for member in self._members]

    def pluck(self, key: str) -> List[Any]:
        """
        Project every member through ``key``.

        A callable attribute is invoked with no arguments, anything else is
        read directly. Lets heterogeneous members expose a uniform accessor.
        """
        def _pluck(member):
            value = read_member_key(member, key)
            return value() if callable(value) else value

        return self.map(_pluck)

    def to_map(self, fn: Optional[Callable[[Any], Any]] = None) -> Dict[Any, Any]:
        """Members keyed by ``id_key`` (or position), optionally projected by ``fn``."""
        result: Dict[Any, Any] = {}
        for index, member in enumerate(self._members):
            key = read_member_key(member, self.id_key) if self.id_key else index
            result[key] = fn(member) if fn else member
        return result

    # ========== INGESTION ==========

    def ingest(self, fn: Callable[[Any, Any], Any], data: Any = _MISSING):
        """
        Match ``data`` to members and call ``fn(member, fragment)`` for each match.

        Curried: ``registry.ingest(fn)`` returns a callable accepting ``data``.

        Raises:
            NoIdKey: Mapping data was given but no ``id_key`` is configured.
            MemberMethodNotImplemented: ``fn`` used a method the member lacks.
            ShapeMismatch: ``data`` is neither a mapping nor a list or tuple.
        """
        if data is _MISSING:
            return partial(self.ingest, fn)

        if isinstance(data, Mapping):
            if not self.id_key:
                raise NoIdKey("Registry without an id_key can only ingest sequences.")
            matches = [
                (self.filter(lambda m, k=key: str(read_member_key(m, self.id_key)) == str(k)), fragment)
                for key, fragment in data.items()
            ]
        elif isinstance(data, (list, tuple)):
            # Snapshot first so callbacks that mount/unmount don't shift positions
            members = list(self._members)
            matches = [
                ([members[index]], fragment)
                for index, fragment in enumerate(data)
                if index < len(members)
            ]
        else:
            raise ShapeMismatch(
                f"Registry can only ingest a mapping, a list or a tuple, got {type(data).__name__}."
            )

        for members, fragment in matches:
            for member in members:
                self._invoke(fn, member, fragment)

    @staticmethod
    def _invoke(fn: Callable[[Any, Any], Any], member: Any, fragment: Any) -> None:
        try:
            fn(member, fragment)
        except AttributeError as e:
            if getattr(e, "obj", None) is member and e.name:
                raise MemberMethodNotImplemented(e.name) from e
            raise
