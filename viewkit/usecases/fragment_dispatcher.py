"""Lazy, keyed cache of dialog fragments owned by one controller.

Each fully-qualified fragment name maps to at most one loaded instance.  The
first ``show_fragment`` call loads it through the ``FragmentLoader``,
registers it as a dependent of the view and caches it; later calls only
re-open the cached instance.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from viewkit.domain.ports import (
    FragmentInstance,
    FragmentLoader,
    FragmentName,
    NotificationSink,
    ViewPort,
)

FragmentCallback = Callable[[Any, Optional[FragmentInstance]], Any]


class FragmentDialogDispatcher:
    """Load, open, close and destroy fragments for a single view.

    Call chain:
        ``viewkit.app.controller.BaseController`` creates one instance per
        controller and forwards its ``show_fragment``/``destroy_fragment``
        calls here.
    """

    def __init__(
        self,
        *,
        controller: Any,
        view: ViewPort,
        loader: FragmentLoader,
        notifier: NotificationSink,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.controller = controller
        self.view = view
        self._loader = loader
        self._notifier = notifier
        self._fragments: Dict[FragmentName, FragmentInstance] = {}
        self._pending: Dict[FragmentName, "asyncio.Future[FragmentInstance]"] = {}

    @staticmethod
    def fragment_id(name: FragmentName) -> str:
        """``"app.view.fragments.SalesOrder"`` -> ``"SalesOrder"``."""
        return name[name.rfind(".") + 1:]

    def is_added(self, name: FragmentName) -> bool:
        return self._fragments.get(name) is not None

    def is_loading(self, name: FragmentName) -> bool:
        return name in self._pending

    def get(self, name: FragmentName) -> Optional[FragmentInstance]:
        return self._fragments.get(name)

    def open_fragment_dialog(self, name: FragmentName) -> None:
        if self.is_added(name):
            self._fragments[name].open()

    def close_fragment_dialog(self, name: FragmentName) -> None:
        if self.is_added(name):
            self._fragments[name].close()

    async def show_fragment(
        self, name: FragmentName, callback: Optional[FragmentCallback] = None
    ) -> Optional[FragmentInstance]:
        """Open a cached fragment or load, cache and open a new one.

        Args:
            name: Fully-qualified fragment name.
            callback: Called as ``callback(controller, instance)`` once the load
                settles, before the dialog opens. ``instance`` is ``None`` when
                the load failed. Exceptions from the callback propagate.

        Returns:
            The cached instance, or ``None`` when loading failed.
        """
        if self.is_added(name):
            self._log.debug("Fragment %s cached; opening", name)
            self.open_fragment_dialog(name)
            return self._fragments[name]

        pending = self._pending.get(name)
        if pending is not None:
            # Another caller is loading this key; share its result. The error,
            # if any, is reported by that caller.
            try:
                await asyncio.shield(pending)
            except Exception:
                self._log.debug("Shared load of fragment %s failed", name)
            if callback is not None:
                callback(self.controller, self.get(name))
            self.open_fragment_dialog(name)
            return self.get(name)

        task = asyncio.ensure_future(self._load(name))
        self._pending[name] = task
        error: Optional[BaseException] = None
        try:
            await asyncio.shield(task)
        except Exception as exc:
            error = exc
        finally:
            self._pending.pop(name, None)

        if callback is not None:
            callback(self.controller, self.get(name))
        self.open_fragment_dialog(name)

        if error is not None:
            self._log.error("Error showing fragment %s: %s", name, error)
            self._notifier.show_error(f"Error showing fragment {name}", str(error))
            self.close_fragment_dialog(name)
        return self.get(name)

    async def _load(self, name: FragmentName) -> FragmentInstance:
        self._log.debug("Loading fragment %s", name)
        instance = await self._loader.load(self.fragment_id(name), name, self.controller)
        self.view.add_dependent(instance)
        self._fragments[name] = instance
        return instance

    def destroy_fragment(self, name: FragmentName) -> None:
        """Destroy the cached instance and forget it; unknown names are ignored."""
        instance = self._fragments.pop(name, None)
        if instance is None:
            return
        self._log.debug("Destroying fragment %s", name)
        instance.destroy()

    def destroy_all(self) -> None:
        for name in list(self._fragments):
            self.destroy_fragment(name)

    def fragment_control(self, name: FragmentName, control_id: str) -> Any:
        """Return a control inside a cached fragment, or ``None``."""
        instance = self.get(name)
        by_id = getattr(instance, "by_id", None)
        control = by_id(control_id) if callable(by_id) else None
        if control is None:
            self._log.warning(
                "Control with ID %s does not exist for fragment %s", control_id, name
            )
        return control


__all__ = ["FragmentCallback", "FragmentDialogDispatcher"]
