"""Tolerant accessors over the rules engine's actor record.

The RMU schema moves fields between releases, so every read goes through
dig() (attribute or mapping access, None on any miss) and multi-location
fields are described as an ordered tuple of paths where the first non-None
value wins. The path tuples in the extractors are the compatibility contract
with upstream schema drift.
"""

from collections.abc import Mapping
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, Union

KeyPath = Tuple[str, ...]
Accessor = Union[KeyPath, Callable[[], Any]]


def _step(node: Any, key: str) -> Any:
    if node is None:
        return None
    if isinstance(node, Mapping):
        return node.get(key)
    if isinstance(node, (list, tuple)):
        return None
    return getattr(node, key, None)


def dig(node: Any, *path: str) -> Any:
    """
    Follow path through nested mappings and objects.

    Example:
        dig(actor, "system", "_dbBlock", "quicknessDB")
    """
    for key in path:
        node = _step(node, key)
        if node is None:
            return None
    return node


def first_present(root: Any, accessors: Iterable[Accessor], default: Any = None) -> Any:
    """
    Evaluate accessors in order and return the first non-None result.

    Each accessor is either a path tuple resolved with dig() from root, or a
    zero-argument callable.
    """
    for accessor in accessors:
        value = accessor() if callable(accessor) else dig(root, *accessor)
        if value is not None:
            return value
    return default


def first_truthy(root: Any, accessors: Iterable[Accessor], default: Any = None) -> Any:
    """Like first_present() but skips falsy values (0, "", empty collections)."""
    for accessor in accessors:
        value = accessor() if callable(accessor) else dig(root, *accessor)
        if value:
            return value
    return default


def as_list(value: Any) -> List[Any]:
    """Normalize a collection-ish value to a list; mappings yield their values."""
    if value is None or isinstance(value, (str, bytes)):
        return []
    if isinstance(value, Mapping):
        return list(value.values())
    if isinstance(value, (list, tuple)):
        return list(value)
    try:
        return list(value)
    except TypeError:
        return []


def as_number(value: Any, default: Union[int, float] = 0) -> Union[int, float]:
    """Return value if it is a real number, else default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def item_type(item: Any) -> Optional[str]:
    return dig(item, "type")


def find_items(actor: Any, types: Sequence[str]) -> List[Any]:
    """Items owned by the actor whose type is one of types."""
    return [item for item in as_list(dig(actor, "items")) if item_type(item) in types]
