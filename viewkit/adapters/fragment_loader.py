"""Fragment loader resolving fully-qualified names to fragment classes.

A name such as ``"myapp.views.fragments.SalesOrder"`` is split at the last
dot: the prefix is imported as a module and the suffix is the class (or any
callable) that builds the fragment. Factories registered explicitly take
precedence over imports, which keeps tests and plug-in fragments simple.
"""

from __future__ import annotations

import importlib
import inspect
import logging
from typing import Any, Callable, Dict, Optional

from viewkit.domain.errors import FragmentLoadError
from viewkit.domain.ports import FragmentInstance, FragmentLoader, FragmentName

FragmentFactory = Callable[..., Any]


class ImportFragmentLoader(FragmentLoader):
    """Instantiate fragments via ``factory(fragment_id=..., controller=...)``."""

    def __init__(self, factories: Optional[Dict[FragmentName, FragmentFactory]] = None) -> None:
        self._log = logging.getLogger(__name__)
        self._factories: Dict[FragmentName, FragmentFactory] = dict(factories or {})

    def register(self, name: FragmentName, factory: FragmentFactory) -> None:
        self._factories[name] = factory

    def resolve(self, name: FragmentName) -> FragmentFactory:
        if name in self._factories:
            return self._factories[name]
        module_name, _, attr = name.rpartition(".")
        if not module_name or not attr:
            raise FragmentLoadError(
                f"Fragment name {name!r} is not fully qualified", fragment_name=name
            )
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise FragmentLoadError(
                f"Cannot import fragment module {module_name!r}", fragment_name=name
            ) from exc
        factory = getattr(module, attr, None)
        if not callable(factory):
            raise FragmentLoadError(
                f"Module {module_name!r} defines no fragment {attr!r}", fragment_name=name
            )
        return factory

    async def load(self, fragment_id: str, name: FragmentName, controller: Any) -> FragmentInstance:
        factory = self.resolve(name)
        self._log.debug("Instantiating fragment %s as %s", name, fragment_id)
        try:
            instance = factory(fragment_id=fragment_id, controller=controller)
            if inspect.isawaitable(instance):
                instance = await instance
        except FragmentLoadError:
            raise
        except Exception as exc:
            raise FragmentLoadError(
                f"Fragment {name!r} failed to initialize: {exc}", fragment_name=name
            ) from exc
        if instance is None:
            raise FragmentLoadError(f"Fragment {name!r} produced no instance", fragment_name=name)
        return instance


__all__ = ["FragmentFactory", "ImportFragmentLoader"]
