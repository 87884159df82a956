"""Code loader — import a site's auxiliary Python code.

Every module below the lib directory is imported when the site is loaded,
so filters it defines with ``@register_filter`` become available to the
rules::

    lib/filters.py          -> whisker_lib.filters
    lib/helpers/dates.py    -> whisker_lib.helpers.dates

Modules are imported in path order.  Their modification times feed the
outdated check: changing site code recompiles every rep.
"""

import importlib.util
import sys
from pathlib import Path
from types import ModuleType

from whisker._errors import ConfigError
from whisker.core.item import CodeSnippet

_MODULE_PREFIX = "whisker_lib"


def load_code_snippets(lib_dir: Path) -> tuple[CodeSnippet, ...]:
    """Import every module in *lib_dir* and describe it as a ``CodeSnippet``.

    Skips ``__pycache__`` contents and files whose names start with ``_``.
    Returns an empty tuple when *lib_dir* does not exist.

    Raises:
        ConfigError: If a module fails to import.

    """
    return tuple(
        _load_snippet(py_file, lib_dir) for py_file in discover_code(lib_dir)
    )


def discover_code(lib_dir: Path) -> list[Path]:
    """Python files below *lib_dir* that are loaded as site code."""
    if not lib_dir.is_dir():
        return []
    return [
        py_file
        for py_file in sorted(lib_dir.rglob("*.py"))
        if not py_file.name.startswith("_") and "__pycache__" not in py_file.parts
    ]


def module_name_for(py_file: Path, lib_dir: Path) -> str:
    """Dotted module name: ``lib/helpers/dates.py`` -> ``whisker_lib.helpers.dates``."""
    relative = py_file.relative_to(lib_dir)
    return _MODULE_PREFIX + "." + ".".join(relative.with_suffix("").parts)


def _load_snippet(py_file: Path, lib_dir: Path) -> CodeSnippet:
    identifier = py_file.relative_to(lib_dir).as_posix()
    _load_module(py_file, module_name_for(py_file, lib_dir))
    return CodeSnippet(identifier, py_file, py_file.stat().st_mtime)


def _load_module(py_file: Path, module_name: str) -> ModuleType:
    """Import a Python file as a module without touching ``sys.path``.

    Reloading the same site (e.g. in ``whisker watch``) executes the module
    again, so edited filters replace their earlier registrations.
    """
    spec = importlib.util.spec_from_file_location(module_name, py_file)
    if spec is None or spec.loader is None:
        msg = f"Cannot load site code from {py_file}"
        raise ConfigError(msg)

    try:
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        msg = f"Failed to load site code {py_file}: {exc}"
        raise ConfigError(msg) from exc

    return module
