# strandpath/path_algorithms/__init__.py

import importlib
import inspect
import pkgutil
from types import ModuleType
from typing import Dict

from .base import PathAlgorithm, PathResult

ALGORITHMS: Dict[str, PathAlgorithm] = {}


def _register(module: ModuleType, module_name: str) -> None:
    # one instance per concrete PathAlgorithm defined in the module itself,
    # keyed like the module: beam_search -> "beam-search"
    for _, cls in inspect.getmembers(module, inspect.isclass):
        if (
            issubclass(cls, PathAlgorithm)
            and cls is not PathAlgorithm
            and cls.__module__ == module.__name__
            and not inspect.isabstract(cls)
        ):
            ALGORITHMS[module_name.replace("_", "-")] = cls()


# --- Discover every search module next to base.py ---
for _, _name, _ in pkgutil.iter_modules(__path__):
    if _name == "base":
        continue
    _register(importlib.import_module(f"{__name__}.{_name}"), _name)

__all__ = ["ALGORITHMS", "PathAlgorithm", "PathResult"]
