import unittest
from unittest.mock import MagicMock

import requests

from planner.data import Order
from planner.errors import AuthError, DataError
from planner.hosted import RestDataClient, RestIdentityService


def _response(status=200, body=None):
    response = MagicMock()
    response.ok = status < 400
    response.status_code = status
    response.content = b"" if body is None else b"{}"
    response.json.return_value = body
    return response


class RestDataClientTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.http = MagicMock()
        self.client = RestDataClient(
            "https://db.example.com/", "anon-key", session=self.http
        )

    async def test_select_builds_postgrest_query(self):
        self.http.request.return_value = _response(body=[{"actual": 10}])
        rows = await self.client.select(
            "expenses",
            columns=["actual"],
            filters={"user_id": "u1"},
            order=Order("created_at", ascending=False),
        )
        self.assertEqual(rows, [{"actual": 10}])
        method, url = self.http.request.call_args.args
        kwargs = self.http.request.call_args.kwargs
        self.assertEqual(method, "GET")
        self.assertEqual(url, "https://db.example.com/rest/v1/expenses")
        self.assertEqual(
            kwargs["params"],
            {"select": "actual", "user_id": "eq.u1", "order": "created_at.desc.nullslast"},
        )
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer anon-key")

    async def test_bound_client_sends_user_token(self):
        self.http.request.return_value = _response(body=[])
        bound = self.client.bind("user-token")
        await bound.select("tasks")
        headers = self.http.request.call_args.kwargs["headers"]
        self.assertEqual(headers["Authorization"], "Bearer user-token")
        self.assertEqual(headers["apikey"], "anon-key")

    async def test_update_matches_id_and_owner(self):
        self.http.request.return_value = _response(body=[{"id": "t1", "completed": True}])
        rows = await self.client.update("tasks", {"completed": True}, "t1", user_id="u1")
        self.assertEqual(rows[0]["completed"], True)
        kwargs = self.http.request.call_args.kwargs
        self.assertEqual(kwargs["params"], {"id": "eq.t1", "user_id": "eq.u1"})
        self.assertEqual(kwargs["json"], {"completed": True})

    async def test_delete_counts_returned_rows(self):
        self.http.request.return_value = _response(body=[{"id": "t1"}])
        self.assertEqual(await self.client.delete("tasks", "t1"), 1)

    async def test_error_response_raises_data_error(self):
        self.http.request.return_value = _response(
            status=400, body={"message": "permission denied for table expenses"}
        )
        with self.assertRaises(DataError) as ctx:
            await self.client.insert("expenses", [{"item": "Cake"}])
        self.assertEqual(ctx.exception.message, "permission denied for table expenses")
        self.assertEqual(ctx.exception.code, "400")

    async def test_network_failure_raises_data_error(self):
        self.http.request.side_effect = requests.ConnectionError("connection refused")
        with self.assertRaises(DataError):
            await self.client.select("guests")

    async def test_non_json_body_raises_data_error(self):
        response = _response(body=[])
        response.json.side_effect = ValueError("Expecting value")
        self.http.request.return_value = response
        with self.assertRaises(DataError) as ctx:
            await self.client.select("tasks")
        self.assertIn("Malformed response", ctx.exception.message)

    async def test_unknown_table_never_reaches_network(self):
        with self.assertRaises(DataError):
            await self.client.select("weddings")
        self.http.request.assert_not_called()


class RestIdentityServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.http = MagicMock()
        self.service = RestIdentityService(
            "https://db.example.com", "anon-key", session=self.http
        )

    async def test_sign_in_returns_identity_with_token(self):
        self.http.request.return_value = _response(body={
            "access_token": "tok",
            "expires_in": 3600,
            "user": {"id": "u1", "email": "a@b.com", "user_metadata": {"full_name": "Sam"}},
        })
        identity = await self.service.sign_in("a@b.com", "secret1")
        self.assertEqual(identity.user_id, "u1")
        self.assertEqual(identity.full_name, "Sam")
        self.assertEqual(identity.access_token, "tok")
        self.assertIsNotNone(identity.expires_at)
        kwargs = self.http.request.call_args.kwargs
        self.assertEqual(kwargs["params"], {"grant_type": "password"})

    async def test_sign_up_pending_verification_returns_none(self):
        self.http.request.return_value = _response(body={"id": "u1", "email": "a@b.com"})
        self.assertIsNone(await self.service.sign_up("a@b.com", "secret1", "Sam"))
        kwargs = self.http.request.call_args.kwargs
        self.assertEqual(kwargs["json"]["data"], {"full_name": "Sam"})

    async def test_backend_message_is_surfaced(self):
        self.http.request.return_value = _response(
            status=400, body={"error_description": "Invalid login credentials"}
        )
        with self.assertRaises(AuthError) as ctx:
            await self.service.sign_in("a@b.com", "nope")
        self.assertEqual(ctx.exception.message, "Invalid login credentials")
        self.assertEqual(ctx.exception.status, 400)

    async def test_token_body_without_user_raises_auth_error(self):
        self.http.request.return_value = _response(body={"access_token": "tok"})
        with self.assertRaises(AuthError) as ctx:
            await self.service.sign_in("a@b.com", "secret1")
        self.assertEqual(ctx.exception.status, 502)

    async def test_non_json_auth_body_raises_auth_error(self):
        response = _response(body={})
        response.json.side_effect = ValueError("Expecting value")
        self.http.request.return_value = response
        with self.assertRaises(AuthError) as ctx:
            await self.service.get_user("tok")
        self.assertEqual(ctx.exception.status, 502)


if __name__ == "__main__":
    unittest.main()
