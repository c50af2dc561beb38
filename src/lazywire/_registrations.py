from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

from ._proxy import create_deep_proxy


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

P = ParamSpec("P")
R = TypeVar("R")


class RegistrationKind(Enum):
    VALUE = "value"
    FUNCTION = "function"
    CLASS = "class"


class DefinitionError(TypeError):
    pass


@dataclass(frozen=True, eq=False)
class Registration:
    """A binding turned into a resolver.

    Calling a registration with ``(container, key)`` resolves it against `container`.
    `key` is the name under which it was reached and only matters for the
    resolution cache of function registrations.
    """

    kind: RegistrationKind
    target: Any
    resolver: Callable[..., Any] = field(repr=False)
    mapping: Mapping[Any, Any] | None = None

    def __call__(self, container: Mapping[Any, Any] | None = None, key: Hashable = None) -> Any:
        return self.resolver(container, key)

    @property
    def cache(self) -> dict[Hashable, Any] | None:
        """Resolution cache of a function registration, None for other kinds."""
        return getattr(self.resolver, "cache", None)


def memoize_with_resolver(fn: Callable[P, R], key_fn: Callable[P, Hashable]) -> Callable[P, R]:
    """Cache `fn` results under ``key_fn(*args, **kwargs)``.

    Only the key computed by `key_fn` identifies a call: two calls producing the
    same key share one result even if their other arguments differ.
    The cache is exposed as the ``cache`` attribute of the returned function.
    """
    cache: dict[Hashable, Any] = {}

    @functools.wraps(fn)
    def memoized(*args: P.args, **kwargs: P.kwargs) -> R:
        cache_key = key_fn(*args, **kwargs)
        if cache_key in cache:
            logger.debug("'%s' resolved from cache (key %r)", getattr(fn, "__qualname__", fn), cache_key)
            return cache[cache_key]

        result = fn(*args, **kwargs)
        cache[cache_key] = result
        return result

    memoized.cache = cache  # type: ignore[attr-defined]
    return memoized


def _resolution_key(container: object, key: Hashable = None) -> Hashable:
    # shared across containers: only the key identifies a resolution
    return key


def _check_mapping(mapping: object) -> Mapping[Any, Any] | None:
    if mapping is not None and not isinstance(mapping, Mapping):
        msg = f"mapping must be a mapping, got {type(mapping).__name__}"
        raise DefinitionError(msg)
    return mapping


def as_value(value: object) -> Registration:
    """Register `value` as is; the container is ignored."""

    def resolve(container: object = None, key: Hashable = None) -> object:
        return value

    return Registration(RegistrationKind.VALUE, value, resolve)


def as_function(fn: Callable[[Any], Any], mapping: Mapping[Any, Any] | None = None) -> Registration:
    """Register `fn`, called with a view of the container extended by `mapping`.

    Results are memoized per resolution key.
    """
    if not callable(fn):
        msg = f"as_function() expects a callable, got {type(fn).__name__}"
        raise DefinitionError(msg)
    mapping = _check_mapping(mapping)

    def resolve(container: Mapping[Any, Any] | None, key: Hashable = None) -> Any:
        return fn(create_deep_proxy(container if container is not None else {}, mapping))

    resolve.__qualname__ = getattr(fn, "__qualname__", resolve.__qualname__)
    return Registration(
        RegistrationKind.FUNCTION,
        fn,
        memoize_with_resolver(resolve, _resolution_key),
        mapping,
    )


def as_class(cls: type, mapping: Mapping[Any, Any] | None = None) -> Registration:
    """Register `cls`, instantiated with a view of the container extended by `mapping`.

    A new instance is built on every resolution.
    """
    if not inspect.isclass(cls):
        msg = f"as_class() expects a class, got {cls!r}"
        raise DefinitionError(msg)
    mapping = _check_mapping(mapping)

    def resolve(container: Mapping[Any, Any] | None, key: Hashable = None) -> Any:
        return cls(create_deep_proxy(container if container is not None else {}, mapping))

    return Registration(RegistrationKind.CLASS, cls, resolve, mapping)


def as_object(obj: Mapping[Any, Callable[[Any], Any]], mapping: Mapping[Any, Any] | None = None) -> dict[Any, Registration]:
    """Wrap every function of `obj` with `as_function`, keeping its keys."""
    if not isinstance(obj, Mapping):
        msg = f"as_object() expects a mapping of functions, got {type(obj).__name__}"
        raise DefinitionError(msg)
    return {key: as_function(item, mapping) for key, item in obj.items()}


def as_module(obj: Mapping[Any, Any]) -> dict[Any, Any]:
    """Turn a nested mapping into a registration tree.

    Nested mappings are converted recursively, callables become function
    registrations and any other value a value registration. Existing
    registrations are kept.
    """
    if not isinstance(obj, Mapping):
        msg = f"as_module() expects a mapping, got {type(obj).__name__}"
        raise DefinitionError(msg)

    tree: dict[Any, Any] = {}
    for key, value in obj.items():
        if isinstance(value, Registration):
            tree[key] = value
        elif isinstance(value, Mapping):
            tree[key] = as_module(value)
        elif callable(value):
            tree[key] = as_function(value)
        else:
            tree[key] = as_value(value)
    return tree
