from __future__ import annotations

from admin_console.services.mutation_gateway import MutationError, MutationGateway


class DeleteConfirmation:
    """Two-step delete: ``show`` the prompt for an entity, then ``confirm`` or ``cancel``."""

    def __init__(self, gateway: MutationGateway):
        self.gateway = gateway
        self.is_open = False
        self.pending_id: str | None = None
        self.deleting = False

    def show(self, entity_id: str) -> None:
        self.pending_id = str(entity_id)
        self.is_open = True

    def cancel(self) -> None:
        if self.deleting:
            return
        self.is_open = False
        self.pending_id = None

    async def confirm(self) -> bool:
        if not self.is_open or self.pending_id is None or self.deleting:
            return False
        self.deleting = True
        try:
            await self.gateway.delete(self.pending_id)
        except MutationError:
            return False
        finally:
            self.deleting = False
        self.is_open = False
        self.pending_id = None
        return True
