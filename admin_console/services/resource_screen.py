from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

from admin_console.schemas.query import QuerySpec
from admin_console.services.delete_confirm import DeleteConfirmation
from admin_console.services.dirty_dialog import DirtyDialog
from admin_console.services.filters import SearchShortcuts
from admin_console.services.list_controller import FetchPage, ListController
from admin_console.services.mutation_gateway import MutationGateway, MutationTarget, Notifier
from admin_console.services.resource_client import ResourceClient

FormValues = TypeVar("FormValues")


class ResourceScreen:
    """Wires the controllers of one CRUD screen around a single REST resource."""

    def __init__(
        self,
        resource: str,
        *,
        client: Optional[MutationTarget] = None,
        fetch_page: Optional[FetchPage] = None,
        notifier: Notifier | None = None,
        per_page: int | None = None,
        date_field: str | None = None,
        locale: str | None = None,
        search_shortcuts: SearchShortcuts | None = None,
    ):
        self.resource = resource
        self.client = client if client is not None else ResourceClient(resource)
        if fetch_page is None:
            fetch_page = self.client.fetch_page
        self.list = ListController(
            fetch_page,
            per_page=per_page,
            date_field=date_field,
            search_shortcuts=search_shortcuts,
        )
        self.gateway = MutationGateway(
            self.client,
            notifier=notifier,
            on_success=self.list.refetch,
            locale=locale,
        )
        self.delete_confirm = DeleteConfirmation(self.gateway)

    def form_dialog(self, defaults: Callable[[], FormValues]) -> DirtyDialog[FormValues]:
        return DirtyDialog(defaults)

    async def submit_create(self, dialog: DirtyDialog[Any], to_payload: Callable[[Any], dict[str, Any]] = dict) -> Any:
        return await dialog.submit(lambda values: self.gateway.create(to_payload(values)))

    async def submit_update(
        self,
        dialog: DirtyDialog[Any],
        entity_id: str,
        to_payload: Callable[[Any], dict[str, Any]] = dict,
    ) -> Any:
        return await dialog.submit(lambda values: self.gateway.update(entity_id, to_payload(values)))

    @property
    def query(self) -> QuerySpec:
        return self.list.query
