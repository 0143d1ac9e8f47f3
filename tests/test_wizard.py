"""Form wizard: navigation, error routing, submission and lifecycle."""

import asyncio
import unittest
from dataclasses import replace

from riceops.app.config import FormConfig
from riceops.core import events
from riceops.core.event_bus import EventBus
from riceops.core.models.lookup import PostOffice
from riceops.core.permissions import SessionCapabilities
from riceops.domain.store.entity_store import EntityStore, InwardSlipPassStore, TransporterStore
from riceops.domain.wizard.engine import EDIT_DENIED_MESSAGE, FormWizard, WizardError
from riceops.domain.wizard.schemas import INWARD_SLIP_PASS_FORM, TRANSPORTER_QUICK_FORM, TRANSPORTER_WIZARD
from riceops.infrastructure.api.base import GatewayError

from fakes import FakeGateway, FakeLookup, make_slip, make_transporter, slip_gateway, transporter_gateway


class BlockingGateway(FakeGateway):
    """Create/update wait until the test releases them."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.gate = asyncio.Event()

    async def create(self, payload):
        await self.gate.wait()
        return await super().create(payload)


def fill_business(wizard: FormWizard) -> None:
    wizard.set_field("business_name", "Sharma Roadlines")
    wizard.set_field("contact_person", "Ravi Sharma")
    wizard.set_field("phone", "9876543210")


def fill_address(wizard: FormWizard) -> None:
    wizard.set_field("address.street", "12 Mill Road")
    wizard.set_field("address.city", "Karnal")
    wizard.set_field("address.state", "Haryana")
    wizard.set_field("address.pincode", "132001")


class TransporterWizardTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.bus = EventBus()
        self.gateway = transporter_gateway(make_transporter("1"))
        self.store = TransporterStore(self.gateway, self.bus)
        self.saved = []
        self.wizard = FormWizard(TRANSPORTER_WIZARD, self.store, bus=self.bus, on_saved=self.saved.append)
        self.assertTrue(await self.wizard.open())

    async def test_navigation_is_clamped(self) -> None:
        self.assertEqual(self.wizard.back(), 1)
        self.assertEqual(self.wizard.next(), 2)
        self.assertEqual(self.wizard.next(), 3)
        self.assertEqual(self.wizard.next(), 3)
        self.assertTrue(self.wizard.is_final_step)

    async def test_jump_to_out_of_range(self) -> None:
        self.assertEqual(self.wizard.jump_to(2), 2)
        with self.assertRaises(ValueError):
            self.wizard.jump_to(4)
        with self.assertRaises(ValueError):
            self.wizard.jump_to(0)
        self.assertEqual(self.wizard.current_step, 2)

    async def test_submit_on_earlier_step_advances(self) -> None:
        self.assertFalse(await self.wizard.submit())

        self.assertEqual(self.wizard.current_step, 2)
        self.assertEqual(self.gateway.count("create"), 0)
        self.assertEqual(self.wizard.errors, {})

    async def test_address_errors_route_to_address_step(self) -> None:
        fill_business(self.wizard)
        self.wizard.jump_to(3)

        self.assertFalse(await self.wizard.submit())

        self.assertEqual(self.wizard.current_step, 2)
        self.assertEqual(
            set(self.wizard.errors),
            {"address.street", "address.city", "address.state", "address.pincode"},
        )
        self.assertEqual(self.gateway.calls, [])

    async def test_business_errors_win_over_address_errors(self) -> None:
        self.wizard.jump_to(3)

        self.assertFalse(await self.wizard.submit())

        self.assertEqual(self.wizard.current_step, 1)
        self.assertIn("business_name", self.wizard.errors)
        self.assertIn("address.city", self.wizard.errors)

    async def test_successful_create(self) -> None:
        closed = []

        async def on_closed(payload):
            closed.append(payload)

        await self.bus.subscribe(events.TOPIC_WIZARD_CLOSED, on_closed)
        fill_business(self.wizard)
        fill_address(self.wizard)
        self.wizard.add_tag("HR05AB1234")
        self.wizard.jump_to(3)

        self.assertTrue(await self.wizard.submit())

        self.assertEqual(self.gateway.count("create"), 1)
        self.assertEqual(self.gateway.count("list"), 1)
        self.assertTrue(self.wizard.state.closed)
        self.assertFalse(self.wizard.fields_visible)
        self.assertEqual(self.saved[0].business_name, "Sharma Roadlines")
        self.assertEqual(self.saved[0].vehicle_numbers, ["HR05AB1234"])
        self.assertIsNotNone(self.store.get_cached(self.saved[0].id))

        await self.bus.drain()
        self.assertEqual(closed, [{"entity_kind": "transporter", "saved": True}])

    async def test_gateway_failure_keeps_wizard_open(self) -> None:
        self.gateway.fail["create"] = GatewayError("GST already registered", status_code=409)
        fill_business(self.wizard)
        fill_address(self.wizard)
        self.wizard.jump_to(3)

        self.assertFalse(await self.wizard.submit())

        self.assertEqual(self.wizard.state.submit_error, "GST already registered")
        self.assertFalse(self.wizard.state.submitting)
        self.assertFalse(self.wizard.state.closed)
        self.assertEqual(self.saved, [])
        self.assertTrue(self.wizard.can_submit)

    async def test_tags(self) -> None:
        self.wizard.add_tag(" MH12AB1234 ")
        self.wizard.add_tag("MH12AB1234")
        self.wizard.add_tag("")
        self.wizard.add_tag("MH14CD5678")
        self.wizard.remove_tag(0)
        self.wizard.remove_tag(5)

        self.assertEqual(self.wizard.tags, ["MH14CD5678"])

    async def test_unknown_field_is_wizard_error(self) -> None:
        with self.assertRaises(WizardError):
            self.wizard.set_field("address.zip", "1")

    async def test_cleared_email_still_submits(self) -> None:
        fill_business(self.wizard)
        fill_address(self.wizard)
        self.wizard.set_field("email", None)
        self.wizard.jump_to(3)

        self.assertTrue(await self.wizard.submit())

        created = [payload for name, payload in self.gateway.calls if name == "create"]
        self.assertIsNone(created[0]["email"])

    async def test_address_block_set_as_dict_submits(self) -> None:
        fill_business(self.wizard)
        self.wizard.set_field(
            "address",
            {"street": "12 Mill Road", "city": "Karnal", "state": "Haryana", "pincode": "132001", "country": "India"},
        )
        self.wizard.jump_to(3)

        self.assertTrue(await self.wizard.submit())

        self.assertEqual(self.saved[0].address.city, "Karnal")

    async def test_bad_value_is_wizard_error(self) -> None:
        with self.assertRaises(WizardError):
            self.wizard.set_field("address", "nowhere")
        with self.assertRaises(WizardError):
            self.wizard.set_field("address", None)

        self.assertEqual(self.wizard.draft.address.country, "India")

    async def test_vehicle_list_set_directly_is_deduped(self) -> None:
        self.wizard.set_field("vehicle_numbers", ["HR05AB1234", "HR05AB1234"])

        self.assertEqual(self.wizard.tags, ["HR05AB1234"])

    async def test_closed_wizard_rejects_edits(self) -> None:
        await self.wizard.close()
        await self.wizard.close()

        with self.assertRaises(WizardError):
            self.wizard.set_field("business_name", "Late")
        with self.assertRaises(WizardError):
            await self.wizard.submit()


class SubmitLifecycleTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        from riceops.core.models.entity import Transporter

        self.gateway = BlockingGateway(Transporter, "transporters")
        self.saved = []
        self.wizard = FormWizard(TRANSPORTER_QUICK_FORM, TransporterStore(self.gateway), on_saved=self.saved.append)
        await self.wizard.open()
        fill_business(self.wizard)
        fill_address(self.wizard)

    async def test_second_submit_while_submitting_is_ignored(self) -> None:
        first = asyncio.create_task(self.wizard.submit())
        await asyncio.sleep(0)
        self.assertTrue(self.wizard.state.submitting)

        self.assertFalse(await self.wizard.submit())

        self.gateway.gate.set()
        self.assertTrue(await first)
        self.assertEqual(self.gateway.count("create"), 1)

    async def test_close_discards_in_flight_submit(self) -> None:
        pending = asyncio.create_task(self.wizard.submit())
        await asyncio.sleep(0)

        await self.wizard.close()
        self.gateway.gate.set()

        self.assertFalse(await pending)
        self.assertEqual(self.saved, [])
        self.assertEqual(len(self.gateway.records), 1)


class EditModeTest(unittest.IsolatedAsyncioTestCase):
    async def test_open_existing_maps_entity_and_updates(self) -> None:
        gateway = transporter_gateway(make_transporter("1", address=None))
        store = TransporterStore(gateway)
        wizard = FormWizard(TRANSPORTER_WIZARD, store, forms=FormConfig(default_country="India"))

        self.assertTrue(await wizard.open("1"))
        self.assertTrue(wizard.fields_visible)
        self.assertEqual(wizard.draft.business_name, "Sharma Roadlines")
        self.assertEqual(wizard.draft.address.country, "India")

        fill_address(wizard)
        wizard.jump_to(3)
        self.assertTrue(await wizard.submit())

        self.assertEqual(gateway.count("update"), 1)
        self.assertEqual(gateway.count("create"), 0)
        self.assertEqual(gateway.records["1"].address.city, "Karnal")

    async def test_failed_fetch_hides_fields(self) -> None:
        gateway = transporter_gateway()
        wizard = FormWizard(TRANSPORTER_WIZARD, TransporterStore(gateway))

        self.assertFalse(await wizard.open("missing"))

        self.assertEqual(wizard.state.load_error, "Record not found")
        self.assertFalse(wizard.fields_visible)
        self.assertFalse(wizard.state.loading)
        wizard.jump_to(3)
        self.assertFalse(await wizard.submit())
        self.assertEqual(gateway.count("update"), 0)

    async def test_edit_denied_without_update_grant(self) -> None:
        gateway = slip_gateway(make_slip("1"))
        reader = SessionCapabilities(user_type="custom", permissions={"vendor": {"read": True}})
        wizard = FormWizard(INWARD_SLIP_PASS_FORM, InwardSlipPassStore(gateway), capabilities=reader)

        self.assertFalse(await wizard.open("1"))

        self.assertEqual(wizard.state.load_error, EDIT_DENIED_MESSAGE)
        self.assertEqual(gateway.calls, [])

    async def test_edit_allowed_with_update_grant(self) -> None:
        gateway = slip_gateway(make_slip("1"))
        editor = SessionCapabilities(user_type="custom", permissions={"vendor": {"update": True}})
        wizard = FormWizard(INWARD_SLIP_PASS_FORM, InwardSlipPassStore(gateway), capabilities=editor)

        self.assertTrue(await wizard.open("1"))
        wizard.add_tag("S-2")
        self.assertTrue(await wizard.submit())

        self.assertEqual(gateway.records["1"].sauda_ids, ["S-1", "S-2"])


class InwardSlipWizardTest(unittest.IsolatedAsyncioTestCase):
    async def test_single_step_validation(self) -> None:
        gateway = slip_gateway()
        wizard = FormWizard(INWARD_SLIP_PASS_FORM, EntityStore(gateway, "inward_slip_pass"))
        await wizard.open()

        self.assertFalse(await wizard.submit())
        self.assertIn("sauda_ids", wizard.errors)
        self.assertEqual(wizard.current_step, 1)

        wizard.add_tag("S-9")
        wizard.set_field("slip_number", "IS-100")
        wizard.set_field("vehicle_number", "PB10XY0001")
        wizard.set_field("party_name", "Gupta Traders")
        self.assertEqual(wizard.validate(), {})
        self.assertTrue(await wizard.submit())
        self.assertEqual(gateway.count("create"), 1)

    async def test_form_without_postal_code_has_no_enrichment(self) -> None:
        wizard = FormWizard(INWARD_SLIP_PASS_FORM, EntityStore(slip_gateway(), "inward_slip_pass"))
        await wizard.open()
        self.assertIsNone(wizard.enrichment)


class WizardEnrichmentTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.lookup = FakeLookup({"132001": PostOffice(Block="Karnal", State="Haryana", Country="India")})
        self.store = TransporterStore(transporter_gateway())

    async def test_six_digit_pincode_fills_address(self) -> None:
        wizard = FormWizard(TRANSPORTER_WIZARD, self.store, lookup_client=self.lookup)
        await wizard.open()

        wizard.set_field("address.pincode", "13200")
        wizard.set_field("address.pincode", "132001")
        await wizard.enrichment.drain()

        self.assertEqual(self.lookup.calls, ["132001"])
        self.assertEqual(wizard.draft.address.city, "Karnal")
        self.assertEqual(wizard.draft.address.pincode, "132001")
        self.assertFalse(wizard.state.enriching)

    async def test_blur_only_lookup(self) -> None:
        wizard = FormWizard(
            TRANSPORTER_WIZARD,
            self.store,
            lookup_client=self.lookup,
            forms=FormConfig(lookup_on_keystroke=False),
        )
        await wizard.open()

        wizard.set_field("address.pincode", "132001")
        self.assertEqual(self.lookup.calls, [])

        wizard.blur_field("address.pincode")
        await wizard.enrichment.drain()
        self.assertEqual(wizard.draft.address.state, "Haryana")

    async def test_lookup_failure_is_silent(self) -> None:
        wizard = FormWizard(TRANSPORTER_WIZARD, self.store, lookup_client=self.lookup)
        await wizard.open()

        wizard.set_field("address.pincode", "999999")
        await wizard.enrichment.drain()

        self.assertEqual(wizard.draft.address.city, "")
        self.assertIsNone(wizard.state.submit_error)


class FormSchemaTest(unittest.TestCase):
    def test_slip_form_is_gated_on_vendor_grant(self) -> None:
        self.assertEqual(INWARD_SLIP_PASS_FORM.permission_key, "vendor")

    def test_unknown_permission_key_rejected(self) -> None:
        with self.assertRaises(ValueError):
            replace(INWARD_SLIP_PASS_FORM, permission_key="vendors")


if __name__ == "__main__":
    unittest.main()
