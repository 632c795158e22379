import unittest

from planner.identity import InMemoryIdentityService
from planner.session import SessionProvider

SECRET = "test-secret-key-with-at-least-32-bytes"


class PendingVerificationService(InMemoryIdentityService):
    async def sign_up(self, email, password, full_name):
        await super().sign_up(email, password, full_name)
        return None


class SessionProviderTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.service = InMemoryIdentityService(SECRET)
        self.session = SessionProvider(self.service)
        self.seen = []
        self.session.subscribe(self.seen.append)

    async def test_sign_up_signs_in_and_notifies(self):
        result = await self.session.sign_up("a@b.com", "secret1", "Sam")
        self.assertTrue(result.ok)
        self.assertTrue(self.session.is_authenticated)
        self.assertEqual(self.session.identity.full_name, "Sam")
        self.assertEqual(self.seen, [result.identity])

    async def test_backend_error_is_returned_verbatim(self):
        result = await self.session.sign_in("nobody@b.com", "secret1")
        self.assertFalse(result.ok)
        self.assertEqual(result.error.message, "Invalid login credentials")
        self.assertFalse(self.session.is_authenticated)
        self.assertEqual(self.seen, [])

    async def test_sign_out_clears_identity(self):
        await self.session.sign_up("a@b.com", "secret1", "Sam")
        await self.session.sign_out()
        self.assertIsNone(self.session.identity)
        self.assertIsNone(self.seen[-1])

    async def test_async_listeners_are_awaited(self):
        calls = []

        async def listener(identity):
            calls.append(identity.email if identity else None)

        self.session.subscribe(listener)
        await self.session.sign_up("a@b.com", "secret1", "Sam")
        self.assertEqual(calls, ["a@b.com"])

    async def test_unsubscribe_stops_notifications(self):
        calls = []
        unsubscribe = self.session.subscribe(calls.append)
        unsubscribe()
        await self.session.sign_up("a@b.com", "secret1", "Sam")
        self.assertEqual(calls, [])

    async def test_restore_from_token(self):
        created = await self.service.sign_up("a@b.com", "secret1", "Sam")
        identity = await self.session.restore(created.access_token)
        self.assertEqual(identity.user_id, created.user_id)
        self.assertTrue(self.session.is_authenticated)

    async def test_restore_with_expired_token_stays_signed_out(self):
        service = InMemoryIdentityService(SECRET, expire_minutes=-1)
        created = await service.sign_up("a@b.com", "secret1", "Sam")
        session = SessionProvider(service)
        self.assertIsNone(await session.restore(created.access_token))
        self.assertFalse(session.is_authenticated)

    async def test_restore_with_garbage_token(self):
        self.assertIsNone(await self.session.restore("garbage"))
        self.assertIsNone(await self.session.restore(None))
        self.assertFalse(self.session.is_authenticated)

    async def test_sign_up_pending_verification_keeps_signed_out(self):
        session = SessionProvider(PendingVerificationService(SECRET))
        result = await session.sign_up("a@b.com", "secret1", "Sam")
        self.assertTrue(result.ok)
        self.assertIsNone(result.identity)
        self.assertFalse(session.is_authenticated)


if __name__ == "__main__":
    unittest.main()
