"""Collect test units from Python modules."""

import importlib
import inspect
import logging
from collections.abc import Sequence
from types import ModuleType

from ui_harness.unit import TestUnit

log = logging.getLogger(__name__)

TEST_PREFIX = "test_"


def collect_units(module: ModuleType) -> Sequence[TestUnit]:
    """Turn every top-level `test_*` function of a module into a test unit.

    Units keep the order in which the functions are defined in the source.
    Only functions defined in the module itself are collected, not imported
    ones.
    """
    functions = [
        obj
        for name, obj in vars(module).items()
        if name.startswith(TEST_PREFIX)
        and inspect.isfunction(obj)
        and obj.__module__ == module.__name__
    ]
    functions.sort(key=lambda func: func.__code__.co_firstlineno)
    return [TestUnit(name=func.__name__, body=func) for func in functions]


def load_units(module_names: Sequence[str]) -> Sequence[TestUnit]:
    """Import modules by dotted name and collect their units.

    Raises:
        ModuleNotFoundError: If a module cannot be imported

    """
    units: list[TestUnit] = []
    for module_name in module_names:
        module = importlib.import_module(module_name)
        collected = collect_units(module)
        log.info("Collected %d unit(s) from %s", len(collected), module_name)
        units.extend(collected)
    return units
