from __future__ import annotations

import inspect
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Iterator

    KeyPath = Hashable | Sequence[Hashable]


_MISSING: Any = object()

_PATH_SEGMENT = re.compile(r"[^.\[\]]+|\[(\d+)\]")


class NodeKind(Enum):
    OBJECT = "object"
    INVOCABLE = "invocable"
    LEAF = "leaf"

    @classmethod
    def of(cls, value: object) -> NodeKind:
        if isinstance(value, MergedView):
            # already a view: hand it out as is instead of wrapping it again
            return cls.LEAF
        if isinstance(value, Mapping):
            return cls.OBJECT
        if callable(value):
            return cls.INVOCABLE
        return cls.LEAF


@dataclass(frozen=True)
class Node:
    kind: NodeKind
    value: Any
    arity: int | None = None  # positional capacity of an invocable, None means unbounded

    @classmethod
    def classify(cls, value: object) -> Node:
        kind = NodeKind.of(value)
        if kind is NodeKind.INVOCABLE:
            return cls(kind, value, positional_capacity(value))  # type: ignore[arg-type]
        return cls(kind, value)


def positional_capacity(fn: Callable[..., Any]) -> int | None:
    """Number of positional arguments `fn` accepts, or None when it takes `*args` or has no signature."""
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return None

    count = 0
    for p in sig.parameters.values():
        if p.kind is p.VAR_POSITIONAL:
            return None
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


def call_adapted(fn: Callable[..., Any], *args: Any, arity: int | None = _MISSING) -> Any:
    """Call `fn` with as many of the leading `args` as its signature accepts.

    Resolvers are always offered `(container, key)`; plain callables such as
    `lambda deps: ...` or `lambda: 42` only receive what they declare.
    """
    if arity is _MISSING:
        arity = positional_capacity(fn)
    if arity is not None:
        args = args[:arity]
    return fn(*args)


def split_path(path: KeyPath) -> list[Hashable]:
    """Split a dotted path such as ``"a.b[0].c"`` into its keys."""
    if not isinstance(path, str):
        if isinstance(path, Sequence):
            return list(path)
        return [path]
    keys: list[Hashable] = []
    for match in _PATH_SEGMENT.finditer(path):
        index = match.group(1)
        keys.append(int(index) if index is not None else match.group(0))
    return keys


def get_path(obj: object, path: KeyPath, default: Any = None) -> Any:
    """Look up `path` in `obj` the way a lodash-style path accessor does.

    An exact key wins over the dotted interpretation. Mappings are indexed by key,
    sequences by integer and any other object by attribute. Missing segments give `default`.
    """
    if isinstance(obj, Mapping) and _has_key(obj, path):
        return obj[path]

    current = obj
    for segment in split_path(path):
        if current is None:
            return default
        if isinstance(current, Mapping):
            if not _has_key(current, segment):
                return default
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, str) and isinstance(segment, int):
            try:
                current = current[segment]
            except IndexError:
                return default
        elif isinstance(segment, str):
            current = getattr(current, segment, _MISSING)
            if current is _MISSING:
                return default
        else:
            return default
    return current


def _has_key(mapping: Mapping[Any, Any], key: object) -> bool:
    try:
        return key in mapping
    except TypeError:  # unhashable path such as a list of keys
        return False


def deep_merge(base: Mapping[Any, Any], override: Mapping[Any, Any] | None) -> dict[Any, Any]:
    """Return a new dict with `override` merged into `base`.

    Nested mappings present on both sides are merged key by key, the override wins
    on any other conflict. Neither input is modified.
    """
    merged = dict(base)
    if not override:
        return merged

    for key, value in override.items():
        current = merged.get(key, _MISSING)
        if (
            isinstance(value, Mapping)
            and isinstance(current, Mapping)
            and not isinstance(value, MergedView)
            and not isinstance(current, MergedView)
        ):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class MergedView(Mapping[Any, Any]):
    """Read-through view over a container level merged with an override mapping.

    The merge of one level happens when the view is built; nested levels are only
    wrapped when accessed. On every access:

    - a nested mapping is returned as another view sharing the same mapping and root,
    - a callable is invoked with ``(root, key)`` and its result returned,
    - anything else is returned verbatim.

    Nothing is cached here; callables that need memoization carry their own cache.

    Attribute access does not reach keys named like Mapping methods (`get`, `keys`,
    `items`, `values`) or starting with an underscore; read those with ``view[key]``.
    """

    __slots__ = ("_base", "_mapping", "_nodes", "_root")

    def __init__(
        self,
        source: Mapping[Any, Any],
        mapping: Mapping[Any, Any] | None = None,
        *,
        root: Mapping[Any, Any] | None = None,
    ) -> None:
        self._root = source if root is None else root
        self._mapping = mapping or {}
        self._base = deep_merge(source, self._mapping)
        self._nodes = {key: Node.classify(value) for key, value in self._base.items()}

    def _lookup(self, path: KeyPath) -> Node | None:
        if _has_key(self._nodes, path):
            return self._nodes[path]
        value = get_path(self._base, path, _MISSING)
        if value is _MISSING:
            return None
        return Node.classify(value)

    def _materialize(self, node: Node, key: KeyPath) -> Any:
        if node.kind is NodeKind.OBJECT:
            return MergedView(node.value, self._mapping, root=self._root)
        if node.kind is NodeKind.INVOCABLE:
            if isinstance(key, Sequence) and not isinstance(key, str):
                key = tuple(key)  # resolution caches need a hashable key
            return call_adapted(node.value, self._root, key, arity=node.arity)
        return node.value

    def get(self, path: KeyPath, default: Any = None) -> Any:
        node = self._lookup(path)
        if node is None:
            return default
        return self._materialize(node, path)

    def __getitem__(self, key: KeyPath) -> Any:
        node = self._lookup(key)
        if node is None:
            raise KeyError(key)
        return self._materialize(node, key)

    def __getattr__(self, name: str) -> Any:
        # only called for names not found on the class, so Mapping methods win
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __contains__(self, key: object) -> bool:
        return self._lookup(key) is not None  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._base)

    def __len__(self) -> int:
        return len(self._base)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._base)!r})"


def create_deep_proxy(source: Mapping[Any, Any], mapping: Mapping[Any, Any] | None = None) -> MergedView:
    """Create a view over `source` in which every level is extended by `mapping`."""
    return MergedView(source, mapping)
