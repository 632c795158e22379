import time
import unittest

from sqlalchemy import text
from sqlalchemy.pool import StaticPool

from planner.errors import AuthError
from planner.identity import InMemoryIdentityService, SqlIdentityService


class IdentityServiceCases:
    def make_service(self, **kwargs):
        raise NotImplementedError

    def setUp(self):
        self.service = self.make_service()

    async def test_sign_up_then_sign_in(self):
        created = await self.service.sign_up("Couple@Example.com", "secret1", "Sam Doe")
        self.assertEqual(created.email, "couple@example.com")
        self.assertEqual(created.full_name, "Sam Doe")
        self.assertTrue(created.access_token)

        identity = await self.service.sign_in("couple@example.com", "secret1")
        self.assertEqual(identity.user_id, created.user_id)

    async def test_wrong_password_is_rejected(self):
        await self.service.sign_up("a@b.com", "secret1", "Sam")
        with self.assertRaises(AuthError) as ctx:
            await self.service.sign_in("a@b.com", "wrong-password")
        self.assertEqual(ctx.exception.message, "Invalid login credentials")

    async def test_duplicate_sign_up_is_rejected(self):
        await self.service.sign_up("a@b.com", "secret1", "Sam")
        with self.assertRaises(AuthError) as ctx:
            await self.service.sign_up("a@b.com", "secret2", "Sam Again")
        self.assertEqual(ctx.exception.message, "User already registered")

    async def test_short_password_is_rejected(self):
        with self.assertRaises(AuthError) as ctx:
            await self.service.sign_up("a@b.com", "abc", "Sam")
        self.assertIn("at least 6 characters", ctx.exception.message)

    async def test_get_user_and_sign_out(self):
        created = await self.service.sign_up("a@b.com", "secret1", "Sam")
        identity = await self.service.get_user(created.access_token)
        self.assertEqual(identity.user_id, created.user_id)

        await self.service.sign_out(created.access_token)
        with self.assertRaises(AuthError):
            await self.service.get_user(created.access_token)

    async def test_expired_token_is_rejected(self):
        service = self.make_service(expire_minutes=-1)
        created = await service.sign_up("late@b.com", "secret1", "Sam")
        with self.assertRaises(AuthError) as ctx:
            await service.get_user(created.access_token)
        self.assertEqual(ctx.exception.message, "Token has expired")
        self.assertEqual(ctx.exception.status, 401)

    async def test_garbage_token_is_rejected(self):
        with self.assertRaises(AuthError):
            await self.service.get_user("not-a-token")

    async def test_revocations_are_forgotten_after_expiry(self):
        created = await self.service.sign_up("a@b.com", "secret1", "Sam")
        await self.service.sign_out(created.access_token)
        [jti] = list(self.service._revoked)

        self.service._revoked[jti] = time.time() - 1
        fresh = await self.service.sign_in("a@b.com", "secret1")
        await self.service.get_user(fresh.access_token)
        self.assertNotIn(jti, self.service._revoked)


class InMemoryIdentityServiceTests(IdentityServiceCases, unittest.IsolatedAsyncioTestCase):
    def make_service(self, **kwargs):
        return InMemoryIdentityService("test-secret-key-with-at-least-32-bytes", **kwargs)


class SqlIdentityServiceTests(IdentityServiceCases, unittest.IsolatedAsyncioTestCase):
    def make_service(self, **kwargs):
        return SqlIdentityService(
            "sqlite+pysqlite:///:memory:",
            "test-secret-key-with-at-least-32-bytes",
            engine_options={
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            },
            **kwargs,
        )

    async def test_database_failure_raises_auth_error(self):
        with self.service.engine.begin() as conn:
            conn.execute(text("DROP TABLE users"))
        with self.assertLogs("planner.identity", level="ERROR"):
            with self.assertRaises(AuthError) as ctx:
                await self.service.sign_in("a@b.com", "secret1")
        self.assertEqual(ctx.exception.status, 503)


if __name__ == "__main__":
    unittest.main()
