import unittest
from unittest.mock import AsyncMock

from admin_console.services.delete_confirm import DeleteConfirmation
from admin_console.services.mutation_gateway import MutationError, MutationGateway, resolve_error_message
from admin_console.services.resource_client import ApiError


class _RecordingNotifier:
    def __init__(self):
        self.notices: list[tuple[str, str]] = []

    def notify(self, kind, message):
        self.notices.append((kind, message))


def _target():
    target = AsyncMock()
    target.create.return_value = {"_id": "1", "categoryNameEn": "Tiles"}
    target.update.return_value = {"_id": "1", "categoryNameEn": "Stone"}
    target.delete.return_value = None
    return target


class ResolveErrorMessageTests(unittest.TestCase):
    def test_server_message_wins(self):
        exc = ApiError("PUT /customers/1 failed: HTTP 400", status_code=400, server_message="Phone already used")
        self.assertEqual(resolve_error_message(exc, "fallback"), "Phone already used")

    def test_exception_message_is_second(self):
        self.assertEqual(resolve_error_message(RuntimeError("Network Error"), "fallback"), "Network Error")

    def test_fallback_is_last(self):
        self.assertEqual(resolve_error_message(RuntimeError(), "fallback"), "fallback")


class MutationGatewayTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.target = _target()
        self.notifier = _RecordingNotifier()
        self.refresh = AsyncMock()
        self.gateway = MutationGateway(self.target, notifier=self.notifier, on_success=self.refresh, locale="en")

    async def test_create_success_notifies_and_refreshes_once(self):
        entity = await self.gateway.create({"categoryNameEn": "Tiles"})
        self.assertEqual(entity["_id"], "1")
        self.target.create.assert_awaited_once_with({"categoryNameEn": "Tiles"})
        self.refresh.assert_awaited_once()
        self.assertEqual(self.notifier.notices, [("success", "Created successfully!")])

    async def test_update_passes_id_and_payload(self):
        entity = await self.gateway.update("1", {"categoryNameEn": "Stone"})
        self.assertEqual(entity["categoryNameEn"], "Stone")
        self.target.update.assert_awaited_once_with("1", {"categoryNameEn": "Stone"})
        self.refresh.assert_awaited_once()

    async def test_delete_returns_none(self):
        self.assertIsNone(await self.gateway.delete("1"))
        self.target.delete.assert_awaited_once_with("1")
        self.assertEqual(self.notifier.notices, [("success", "Deleted successfully!")])

    async def test_failure_surfaces_server_message_and_skips_refresh(self):
        self.target.update.side_effect = ApiError(
            "PUT /customers/1 failed: HTTP 409",
            status_code=409,
            server_message="Email already exists",
        )
        with self.assertRaises(MutationError) as ctx:
            await self.gateway.update("1", {"customerEmail": "x@example.com"})
        self.assertEqual(ctx.exception.message, "Email already exists")
        self.assertEqual(ctx.exception.operation, "update")
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(self.notifier.notices, [("error", "Email already exists")])
        self.refresh.assert_not_awaited()
        self.assertEqual(self.gateway.pending, 0)

    async def test_failure_without_message_uses_localized_fallback(self):
        self.target.delete.side_effect = RuntimeError()
        gateway = MutationGateway(self.target, notifier=self.notifier, locale="ar")
        with self.assertRaises(MutationError) as ctx:
            await gateway.delete("1")
        self.assertEqual(ctx.exception.message, "فشل في الحذف")

    async def test_default_notifier_logs(self):
        gateway = MutationGateway(self.target)
        with self.assertLogs("admin_console.mutations", level="INFO") as logs:
            await gateway.create({"categoryNameEn": "Tiles"})
        self.assertTrue(any("SUCCESS" in line for line in logs.output))


class DeleteConfirmationTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.target = _target()
        self.refresh = AsyncMock()
        self.gateway = MutationGateway(self.target, notifier=_RecordingNotifier(), on_success=self.refresh)
        self.confirm = DeleteConfirmation(self.gateway)

    async def test_confirm_deletes_pending_entity(self):
        self.confirm.show("42")
        self.assertTrue(self.confirm.is_open)
        self.assertTrue(await self.confirm.confirm())
        self.target.delete.assert_awaited_once_with("42")
        self.refresh.assert_awaited_once()
        self.assertFalse(self.confirm.is_open)
        self.assertIsNone(self.confirm.pending_id)

    async def test_cancel_never_deletes(self):
        self.confirm.show("42")
        self.confirm.cancel()
        self.assertFalse(await self.confirm.confirm())
        self.target.delete.assert_not_awaited()

    async def test_failed_delete_keeps_prompt_open(self):
        self.target.delete.side_effect = ApiError("DELETE failed", status_code=500)
        self.confirm.show("42")
        self.assertFalse(await self.confirm.confirm())
        self.assertTrue(self.confirm.is_open)
        self.assertEqual(self.confirm.pending_id, "42")
        self.assertFalse(self.confirm.deleting)


if __name__ == "__main__":
    unittest.main()
