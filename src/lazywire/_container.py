from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ._proxy import MergedView, call_adapted, create_deep_proxy, get_path


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._proxy import KeyPath


def create_container(definition: Mapping[Any, Any]) -> dict[Any, Any]:
    """Resolve every registration of `definition` into a plain tree.

    Example:
      container = create_container({
          "name": "Ann",
          "greeting": as_function(lambda deps: f"hi {deps.name}"),
      })
      container["greeting"]  # "hi Ann"

    Any error raised while resolving a registration aborts the whole assembly.
    """
    view = create_deep_proxy(definition)
    container = resolve_container(definition, view)
    logger.debug("Container assembled with %d top-level entries", len(container))
    return container


def resolve_container(definition: Mapping[Any, Any], view: Mapping[Any, Any]) -> dict[Any, Any]:
    """Read each key of `definition` through `view`, keeping the definition's shape.

    Keys present in `view` but not in `definition` are left out.
    """
    result: dict[Any, Any] = {}
    for key, declared in definition.items():
        item = view[key]
        if isinstance(declared, Mapping) and isinstance(item, MergedView):
            result[key] = resolve_container(declared, item)
        else:
            result[key] = item
    return result


def get_from_container(path: KeyPath) -> Callable[[Any], Any]:
    """Build an accessor for `path` in a container.

    A callable found at `path` is called with the container; any other value is returned as is.
    Missing paths give None.
    """

    def accessor(container: Any) -> Any:
        value = get_path(container, path)
        if callable(value):
            return call_adapted(value, container)
        return value

    return accessor
