import asyncio
import unittest

from riceops.core import events
from riceops.core.event_bus import EventBus


class EventBusTest(unittest.IsolatedAsyncioTestCase):
    async def test_publish_delivers_payload(self) -> None:
        bus = EventBus()
        seen = []

        async def handler(payload):
            seen.append(payload)

        await bus.subscribe("demo", handler)
        await bus.publish("demo", {"value": 42})
        await asyncio.sleep(0)  # allow scheduled tasks to run

        self.assertEqual(seen, [{"value": 42}])

    async def test_clear_drops_subscriptions(self) -> None:
        bus = EventBus()
        seen = []

        async def handler(payload):
            seen.append(payload)

        await bus.subscribe("demo", handler)
        bus.clear()
        await bus.publish("demo", {"value": 1})
        await asyncio.sleep(0)

        self.assertEqual(seen, [])

    async def test_handler_failure_isolated(self) -> None:
        bus = EventBus()
        seen = []

        async def bad_handler(payload):
            raise RuntimeError("boom")

        async def good_handler(payload):
            seen.append(payload.get("value"))

        await bus.subscribe("demo", bad_handler)
        await bus.subscribe("demo", good_handler)
        await bus.publish("demo", {"value": 7})
        await bus.drain()

        self.assertEqual(seen, [7])

    async def test_handler_failure_logged_with_entity_context(self) -> None:
        bus = EventBus()

        async def bad_handler(payload):
            raise RuntimeError("boom")

        await bus.subscribe(events.TOPIC_ENTITY_DELETED, bad_handler)
        with self.assertLogs("riceops.core.event_bus", level="ERROR") as logs:
            await bus.publish(events.TOPIC_ENTITY_DELETED, events.create_entity_deleted_event("transporter", "12"))
            await bus.drain()

        record = logs.records[0]
        self.assertIn("bad_handler", record.getMessage())
        self.assertEqual(record.entity_kind, "transporter")
        self.assertEqual(record.entity_id, "12")

    async def test_unsubscribe_removes_handler(self) -> None:
        bus = EventBus()
        seen = []

        async def handler(payload):
            seen.append(payload)

        await bus.subscribe("demo", handler)
        await bus.unsubscribe("demo", handler)
        await bus.unsubscribe("other", handler)  # unknown topic is fine
        await bus.publish("demo", {"value": 1})
        await bus.drain()

        self.assertEqual(seen, [])

    async def test_subscribe_twice_delivers_once(self) -> None:
        bus = EventBus()
        seen = []

        async def handler(payload):
            seen.append(payload)

        await bus.subscribe("demo", handler)
        await bus.subscribe("demo", handler)
        await bus.publish("demo", {})
        await bus.drain()

        self.assertEqual(len(seen), 1)

    async def test_drain_waits_for_slow_handlers(self) -> None:
        bus = EventBus()
        seen = []

        async def slow_handler(payload):
            await asyncio.sleep(0.01)
            seen.append(payload["entity_id"])

        await bus.subscribe(events.TOPIC_ENTITY_DELETED, slow_handler)
        await bus.publish(
            events.TOPIC_ENTITY_DELETED,
            events.create_entity_deleted_event("transporter", "t-1"),
        )
        await bus.drain()

        self.assertEqual(seen, ["t-1"])


class EventFactoryTest(unittest.TestCase):
    def test_store_refreshed_counts_items(self) -> None:
        payload = events.create_store_refreshed_event("transporter", [{"id": "1"}, {"id": "2"}])
        self.assertEqual(payload["count"], 2)
        self.assertEqual(payload["entity_kind"], "transporter")

    def test_wizard_saved_carries_mode(self) -> None:
        payload = events.create_wizard_saved_event("inward_slip_pass", "9", "update")
        self.assertEqual(payload, {"entity_kind": "inward_slip_pass", "entity_id": "9", "mode": "update"})


if __name__ == "__main__":
    unittest.main()
