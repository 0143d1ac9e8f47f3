"""Console session state: login, session invalidation and wizard factories."""

import unittest

import httpx

from riceops.app.config import ApiConfig, ConsoleConfig
from riceops.app.state import ConsoleState, get_state, init_state, reset_state
from riceops.core import events
from riceops.domain.wizard.schemas import TRANSPORTER_QUICK_FORM, TRANSPORTER_WIZARD
from riceops.infrastructure.api.base import ApiClient, AuthenticationError

LOGIN_PAYLOAD = {
    "user": {"id": "u1", "username": "meera", "user_type": "custom"},
    "token": "tok",
    "expires_in": 3600,
    "permissions": {"vendor": {"read": True, "update": True}},
}

TRANSPORTER = {"id": "t1", "business_name": "Sharma Roadlines", "contact_person": "Ravi", "phone": "1"}


def handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/auth/loginUser"):
        return httpx.Response(200, json={"success": True, "data": LOGIN_PAYLOAD})
    if path.endswith("/auth/logout"):
        return httpx.Response(200, json={"success": True})
    if request.headers.get("Authorization") != "Bearer tok":
        return httpx.Response(401, json={"message": "Session expired"})
    if path.endswith("/transporters/t1"):
        return httpx.Response(200, json={"success": True, "data": TRANSPORTER})
    if path.endswith("/transporters"):
        return httpx.Response(200, json={"success": True, "data": [TRANSPORTER]})
    return httpx.Response(404, json={"message": "Not found"})


class ConsoleStateTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.config = ConsoleConfig(api=ApiConfig(base_url="http://backoffice.test/api"))
        client = ApiClient(base_url=self.config.api.base_url, transport=httpx.MockTransport(handler))
        self.state = ConsoleState.create(self.config, client=client)

    async def asyncTearDown(self) -> None:
        await self.state.aclose()

    async def test_login_builds_capabilities(self) -> None:
        caps = await self.state.login("meera", "secret")

        self.assertTrue(caps.is_custom_user())
        self.assertTrue(caps.can_update("vendor"))
        self.assertTrue(self.state.is_authenticated)
        self.assertEqual(self.state.user["username"], "meera")

    async def test_stores_share_client_and_bus(self) -> None:
        await self.state.login("meera", "secret")

        items = await self.state.transporters.load()

        self.assertEqual(items[0].id, "t1")
        self.assertIs(self.state.transporters.bus, self.state.bus)
        self.assertIs(self.state.transporters, self.state.transporters)

    async def test_unauthorized_response_ends_session(self) -> None:
        seen = []

        async def on_invalidated(payload):
            seen.append(payload)

        await self.state.bus.subscribe(events.TOPIC_SESSION_INVALIDATED, on_invalidated)
        await self.state.login("meera", "secret")
        self.state.client.set_token("stale")

        with self.assertRaises(AuthenticationError):
            await self.state.transporters.load()
        await self.state.drain()

        self.assertFalse(self.state.is_authenticated)
        self.assertFalse(self.state.capabilities.is_custom_user())
        self.assertEqual(seen, [{"status_code": 401, "endpoint": "/transporters"}])

    async def test_logout_clears_session(self) -> None:
        await self.state.login("meera", "secret")
        await self.state.logout()

        self.assertFalse(self.state.is_authenticated)
        self.assertEqual(self.state.user, {})

    async def test_wizard_factories(self) -> None:
        await self.state.login("meera", "secret")

        wizard = await self.state.open_transporter_wizard("t1")
        quick = await self.state.open_transporter_wizard(quick=True)
        slip = await self.state.open_inward_slip_wizard()

        self.assertIs(wizard.schema, TRANSPORTER_WIZARD)
        self.assertEqual(wizard.draft.business_name, "Sharma Roadlines")
        self.assertIs(quick.schema, TRANSPORTER_QUICK_FORM)
        self.assertIsNotNone(quick.enrichment)
        self.assertIs(slip.store, self.state.inward_slip_passes)
        self.assertTrue(slip.fields_visible)


class GlobalStateTest(unittest.TestCase):
    def tearDown(self) -> None:
        reset_state()

    def test_get_state_requires_init(self) -> None:
        reset_state()
        with self.assertRaises(RuntimeError):
            get_state()

    def test_init_state(self) -> None:
        state = init_state(ConsoleConfig())
        self.assertIs(get_state(), state)


if __name__ == "__main__":
    unittest.main()
