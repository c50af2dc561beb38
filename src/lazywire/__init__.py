"""Lazy, proxy-based dependency injection.

This package turns a tree of registrations (values, functions and classes) into a
resolved object graph. Every registration receives a read-through view of the
whole container, optionally extended by an override mapping, and its
dependencies are resolved only when accessed.

Exports:
- `create_container`: Resolve a definition tree into a plain tree of the same shape.
- `as_value` / `as_function` / `as_class`: Wrap a value, a function or a class into a `Registration`.
- `as_object` / `as_module`: Batch-wrap a mapping of functions or a nested mapping.
- `create_deep_proxy`: Build the `MergedView` registrations receive as their dependencies.
- `get_from_container`: Accessor for a dotted path in a container.
- `load_definition_tree`: Build a definition tree from a directory of Python files.
"""

from ._container import create_container, get_from_container, resolve_container
from ._loader import LoaderError, ModuleEntry, list_modules, load_definition_tree
from ._proxy import MergedView, create_deep_proxy, deep_merge
from ._registrations import (
    DefinitionError,
    Registration,
    RegistrationKind,
    as_class,
    as_function,
    as_module,
    as_object,
    as_value,
    memoize_with_resolver,
)


__all__ = [
    "DefinitionError",
    "LoaderError",
    "MergedView",
    "ModuleEntry",
    "Registration",
    "RegistrationKind",
    "as_class",
    "as_function",
    "as_module",
    "as_object",
    "as_value",
    "create_container",
    "create_deep_proxy",
    "deep_merge",
    "get_from_container",
    "list_modules",
    "load_definition_tree",
    "memoize_with_resolver",
    "resolve_container",
]
