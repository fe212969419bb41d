"""Per-view controller base and data-service wiring.

``BaseController`` is what view controllers extend: it owns exactly one
``FragmentDialogDispatcher`` for its view and builds a fresh
``RequestOrchestrator`` for every request descriptor.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from ..adapters.fragment_loader import ImportFragmentLoader
from ..adapters.odata_rest import ODataRestAdapter
from ..domain.descriptor import RequestDescriptor
from ..domain.filters import Filter, build_filters
from ..domain.ports import (
    BusyIndicator,
    FilterableList,
    FragmentInstance,
    FragmentLoader,
    NotificationSink,
    ViewPort,
)
from ..usecases.fragment_dispatcher import FragmentCallback, FragmentDialogDispatcher
from ..usecases.request_orchestrator import RequestOrchestrator
from ..usecases.validate_controls import ClearControls, ControlsValidation, TableValidation
from ..utils import logging as logging_utils
from ..viewmodels.settings_vm import SettingsVM
from .views.busy_dialog import BusyDialog

BusyFactory = Callable[[], Optional[BusyIndicator]]


def build_service(settings: SettingsVM) -> ODataRestAdapter:
    """Create the REST data-service adapter from settings.

    Raises:
        ValueError: ``settings.base_url`` is not configured.
    """
    if not settings.is_valid():
        raise ValueError("Service base URL is not configured")
    return ODataRestAdapter(
        settings.base_url,
        api_key=settings.api_key or None,
        request_timeout_s=settings.request_timeout_s,
        retries=settings.retries,
        csrf_enabled=settings.csrf_enabled,
    )


def apply_logging_preferences(settings: SettingsVM) -> int:
    """Install the root log format, then apply ``settings.debug_logging``.

    Call once at application start and again whenever the setting changes.
    Levels forced through the environment win over the setting.
    """
    logging_utils.configure_root()
    level = logging_utils.apply_debug_preference(settings.debug_logging)
    logging.getLogger(__name__).debug(
        "Effective log level: %s", logging_utils.level_name(level)
    )
    return level


def settings_busy_factory(root: Any, settings: SettingsVM) -> BusyFactory:
    """Busy dialogs over ``root`` that appear after the configured delay."""

    def make() -> BusyDialog:
        return BusyDialog.for_parent(root, delay_ms=settings.busy_indicator_delay_ms)

    return make


class BaseController:
    """Common helpers shared by every view controller."""

    def __init__(
        self,
        view: ViewPort,
        *,
        notifier: NotificationSink,
        fragment_loader: Optional[FragmentLoader] = None,
        busy_factory: Optional[BusyFactory] = None,
        root: Any = None,
        settings: Optional[SettingsVM] = None,
    ) -> None:
        """Store collaborators.

        Args:
            view: View owned by this controller.
            notifier: Sink for user-visible messages.
            fragment_loader: Loader for dialog fragments; defaults to
                :class:`ImportFragmentLoader`.
            busy_factory: Builds one busy indicator per request, or ``None``.
            root: Toolkit root widget used as parent by dialog fragments.
            settings: When given together with ``root`` and no
                ``busy_factory``, requests get a ``BusyDialog`` using
                ``settings.busy_indicator_delay_ms``.
        """
        self._log = logging.getLogger(__name__)
        self.view = view
        self.notifier = notifier
        self.root = root
        self._fragment_loader = fragment_loader or ImportFragmentLoader()
        self.settings = settings
        if busy_factory is None and settings is not None and root is not None:
            busy_factory = settings_busy_factory(root, settings)
        self._busy_factory = busy_factory
        self._fragments: Optional[FragmentDialogDispatcher] = None

    # ---------- fragments ----------

    @property
    def fragments(self) -> FragmentDialogDispatcher:
        if self._fragments is None:
            self._fragments = FragmentDialogDispatcher(
                controller=self,
                view=self.view,
                loader=self._fragment_loader,
                notifier=self.notifier,
            )
        return self._fragments

    async def show_fragment(
        self, name: str, callback: Optional[FragmentCallback] = None
    ) -> Optional[FragmentInstance]:
        return await self.fragments.show_fragment(name, callback)

    def open_fragment_dialog(self, name: str) -> None:
        self.fragments.open_fragment_dialog(name)

    def close_fragment_dialog(self, name: str) -> None:
        self.fragments.close_fragment_dialog(name)

    def destroy_fragment(self, name: str) -> None:
        self.fragments.destroy_fragment(name)

    def get_fragment_control_by_id(self, name: str, control_id: str) -> Any:
        return self.fragments.fragment_control(name, control_id)

    # ---------- controls ----------

    def get_view_control_by_id(self, control_id: str) -> Any:
        if not control_id:
            self._log.warning("Control id must not be empty")
            return None
        control = self.view.by_id(control_id)
        if control is None:
            self._log.warning("Control %s does not exist", control_id)
        return control

    def show_busy(self, control_id: str, is_busy: bool) -> None:
        control = self.get_view_control_by_id(control_id)
        set_busy = getattr(control, "set_busy", None)
        if callable(set_busy):
            set_busy(is_busy)

    def controls_validation(self, control_ids: Iterable[str], submit_button_id: Optional[str] = None) -> ControlsValidation:
        validation = ControlsValidation(self.view)
        validation.add_controls(list(control_ids))
        if submit_button_id:
            validation.add_submit_button(submit_button_id)
        return validation

    def build_filters(self, query: Any, binding_fields: Any) -> Optional[Filter]:
        try:
            return build_filters(query, binding_fields)
        except (TypeError, ValueError) as exc:
            self.notifier.show_error(str(exc))
            return None

    def search_by_binding_fields(
        self, query: Any, binding_fields: Any, source: FilterableList
    ) -> Optional[Filter]:
        """Narrow ``source`` to items whose binding fields contain ``query``.

        Typically wired to a search field's live-change event, with
        ``source`` being the list or table the field searches.
        Returns the applied filter, or ``None`` if the fields were invalid.
        """
        combined = self.build_filters(query, binding_fields)
        if combined is None:
            return None
        applied = Filter(filters=(combined,), and_=True)
        source.apply_filters([applied])
        return applied

    def table_validation(self, lines: Iterable[Any], mandatory_columns: Iterable[int]) -> TableValidation:
        validation = TableValidation(self.view, list(mandatory_columns))
        validation.add_table_lines(lines)
        return validation

    def clear_controls(self, control_ids: Iterable[str]) -> int:
        return ClearControls(self.view, list(control_ids)).clean_all_controls()

    # ---------- requests ----------

    def new_request(self, descriptor: RequestDescriptor) -> RequestOrchestrator:
        busy = self._busy_factory() if self._busy_factory else None
        orchestrator = RequestOrchestrator(self.notifier, busy)
        orchestrator.configure(descriptor)
        return orchestrator

    async def do_request(self, descriptor: RequestDescriptor, kind: Any) -> Any:
        return await self.new_request(descriptor).execute(kind)

    def dispose(self) -> None:
        """Destroy every cached fragment; call when the view goes away."""
        if self._fragments is not None:
            self._fragments.destroy_all()


__all__ = [
    "BaseController",
    "BusyFactory",
    "apply_logging_preferences",
    "build_service",
    "settings_busy_factory",
]
