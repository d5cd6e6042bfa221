from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Literal, Optional, Protocol

from admin_console.core.messages import translate

_LOG = logging.getLogger("admin_console.mutations")

NoticeKind = Literal["success", "error", "info"]
Operation = Literal["create", "update", "delete"]

_SUCCESS_KEYS = {"create": "created_success", "update": "updated_success", "delete": "deleted_success"}
_FAILURE_KEYS = {"create": "create_failed", "update": "update_failed", "delete": "delete_failed"}


class Notifier(Protocol):
    def notify(self, kind: NoticeKind, message: str) -> None:
        ...


class LoggingNotifier:
    def notify(self, kind: NoticeKind, message: str) -> None:
        level = logging.ERROR if kind == "error" else logging.INFO
        _LOG.log(level, "[%s] %s", kind.upper(), message)


class MutationTarget(Protocol):
    async def create(self, payload: dict[str, Any]) -> Any:
        ...

    async def update(self, entity_id: str, payload: dict[str, Any]) -> Any:
        ...

    async def delete(self, entity_id: str) -> None:
        ...


class MutationError(Exception):
    def __init__(self, message: str, *, operation: Operation, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.status_code = status_code


def resolve_error_message(exc: BaseException, fallback: str) -> str:
    server_message = str(getattr(exc, "server_message", None) or "").strip()
    if server_message:
        return server_message
    text = str(exc or "").strip()
    if text:
        return text
    return fallback


class MutationGateway:
    """Create/update/delete with notification and a post-success refresh hook.

    The gateway keeps no list state and never patches data locally: after
    every successful mutation it awaits ``on_success`` (normally the owning
    list controller's ``refetch``) so the table is reloaded from the server.
    """

    def __init__(
        self,
        target: MutationTarget,
        *,
        notifier: Notifier | None = None,
        on_success: Optional[Callable[[], Awaitable[Any]]] = None,
        locale: str | None = None,
    ):
        self.target = target
        self.notifier = notifier or LoggingNotifier()
        self.on_success = on_success
        self.locale = locale
        self._pending = 0

    @property
    def pending(self) -> int:
        return self._pending

    async def _run(self, operation: Operation, call: Callable[[], Awaitable[Any]]) -> Any:
        self._pending += 1
        try:
            result = await call()
        except Exception as exc:
            message = resolve_error_message(exc, translate(_FAILURE_KEYS[operation], self.locale))
            _LOG.warning("%s failed: %s", operation, exc)
            self.notifier.notify("error", message)
            raise MutationError(
                message,
                operation=operation,
                status_code=getattr(exc, "status_code", None),
            ) from exc
        finally:
            self._pending -= 1
        self.notifier.notify("success", translate(_SUCCESS_KEYS[operation], self.locale))
        if self.on_success is not None:
            await self.on_success()
        return result

    async def create(self, payload: dict[str, Any]) -> Any:
        return await self._run("create", lambda: self.target.create(payload))

    async def update(self, entity_id: str, payload: dict[str, Any]) -> Any:
        return await self._run("update", lambda: self.target.update(entity_id, payload))

    async def delete(self, entity_id: str) -> None:
        await self._run("delete", lambda: self.target.delete(entity_id))
