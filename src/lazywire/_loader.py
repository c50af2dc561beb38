from __future__ import annotations

import asyncio
import hashlib
import importlib.util
import logging
import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ._registrations import as_function, as_object, as_value


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    import os
    from collections.abc import Iterable
    from types import ModuleType

    from ._registrations import Registration

INDEX_FILE = "index.py"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_IDENTIFIER = re.compile(r"[^0-9a-zA-Z]+")


class LoaderError(ImportError):
    pass


@dataclass(frozen=True)
class ModuleEntry:
    name: str
    path: Path
    is_python_file: bool
    is_directory: bool
    is_index: bool


def entry_name(filename: str) -> str:
    """Derive the registration key for a file or directory name.

    Example:
      entry_name("user-repository.py")  # "user_repository"
      entry_name("HttpClient")          # "http_client"
    """
    stem = filename[: -len(".py")] if filename.endswith(".py") else filename
    stem = _CAMEL_BOUNDARY.sub("_", stem)
    return _NON_IDENTIFIER.sub("_", stem).strip("_").lower()


def _is_listed(path: Path) -> bool:
    name = path.name
    if name.startswith((".", "_")):
        return False
    return path.is_dir() or (path.is_file() and path.suffix == ".py")


def _glob(base: Path, pattern: str) -> Iterable[Path]:
    pattern_path = Path(pattern)
    if pattern_path.is_absolute():
        anchor = Path(pattern_path.anchor)
        return anchor.glob(str(pattern_path.relative_to(anchor)))
    return base.glob(pattern)


def list_modules(
    patterns: str | Iterable[str],
    cwd: str | os.PathLike[str] | None = None,
) -> list[ModuleEntry]:
    """Glob `patterns` under `cwd` and describe the directories and Python files found.

    Hidden entries, private names (leading underscore) and ``__pycache__`` are skipped.
    Returned paths are relative to `cwd` when given.
    """
    if isinstance(patterns, str):
        patterns = [patterns]
    base = Path(cwd) if cwd is not None else Path()

    found: dict[Path, ModuleEntry] = {}
    for pattern in patterns:
        for path in _glob(base, pattern):
            if not _is_listed(path):
                continue
            relative = path.relative_to(base) if cwd is not None and path.is_relative_to(base) else path
            is_directory = path.is_dir()
            found[relative] = ModuleEntry(
                name=entry_name(path.name),
                path=relative,
                is_python_file=not is_directory,
                is_directory=is_directory,
                is_index=path.name == INDEX_FILE,
            )

    return [found[path] for path in sorted(found)]


def _module_name(file_path: Path) -> str:
    digest = hashlib.sha1(str(file_path).encode(), usedforsecurity=False).hexdigest()[:12]
    return f"_lazywire_{entry_name(file_path.name)}_{digest}"


def import_file(file_path: str | os.PathLike[str]) -> ModuleType:
    """Import the Python file at `file_path`, reusing an earlier import of the same file."""
    resolved = Path(file_path).resolve()
    name = _module_name(resolved)
    if name in sys.modules:
        return sys.modules[name]

    spec = importlib.util.spec_from_file_location(name, resolved)
    if spec is None or spec.loader is None:
        msg = f"Cannot import {resolved}"
        raise LoaderError(msg, path=str(resolved))

    logger.debug("Importing '%s' as '%s'", resolved, name)
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return module


async def _load_export(file_path: Path, export_name: str) -> Any:
    module = await asyncio.to_thread(import_file, file_path)
    try:
        return getattr(module, export_name)
    except AttributeError:
        msg = f"Module {file_path} has no '{export_name}' export"
        raise LoaderError(msg, name=module.__name__, path=str(file_path)) from None


async def load_definition_tree(
    path: str | os.PathLike[str],
    *,
    cwd: str | os.PathLike[str] | None = None,
    mapping: Mapping[Any, Any] | None = None,
    export_name: str = "default",
) -> Registration | dict[str, Any]:
    """Build a registration tree from the directory at `path`.

    If the directory holds an ``index.py``, its export alone defines the tree:
    a callable becomes one function registration, a mapping one function
    registration per item. Otherwise every Python file becomes a function
    registration (callable export) or a value registration, and every
    subdirectory is loaded recursively.

    `path` is taken relative to `cwd` when given. Each file must define the
    attribute named by `export_name`.
    """
    base = Path(cwd) if cwd is not None else Path()
    entries = list_modules(f"{Path(path).as_posix()}/*", cwd=cwd)

    index = next((entry for entry in entries if entry.is_index), None)
    if index is not None:
        export = await _load_export(base / index.path, export_name)
        if callable(export):
            return as_function(export, mapping)
        if isinstance(export, Mapping):
            return as_object(export, mapping)
        msg = f"Index {base / index.path} must export a callable or a mapping, got {type(export).__name__}"
        raise LoaderError(msg, path=str(base / index.path))

    async def load_entry(entry: ModuleEntry) -> Any:
        if entry.is_directory:
            return await load_definition_tree(entry.path, cwd=cwd, mapping=mapping, export_name=export_name)

        export = await _load_export(base / entry.path, export_name)
        return as_function(export, mapping) if callable(export) else as_value(export)

    values = await asyncio.gather(*(load_entry(entry) for entry in entries))
    return {entry.name: value for entry, value in zip(entries, values)}
