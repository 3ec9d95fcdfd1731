import asyncio
import unittest
from unittest.mock import AsyncMock

from planner.sessions import InMemorySessionRegistry, PlanningSession
from tests.helpers import ControlledRouter, quiet_event_log, route_for


class SessionTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        quiet_event_log(self)

    async def test_session_wires_store_to_resolver(self):
        router = ControlledRouter()
        session = PlanningSession.create("trip-1", fetch_route=router)
        first = session.bridge.on_map_click(0.0, 0.0)
        session.bridge.on_map_click(1.0, 1.0)
        self.assertEqual(session.resolver.generation, 2)

        session.store.rename_stop(first.id, "Home")
        self.assertEqual(session.resolver.generation, 2)
        session.close()

    async def test_demo_itinerary_requests_route(self):
        router = ControlledRouter()
        session = PlanningSession.create("trip-demo", fetch_route=router)
        session.load_demo()
        self.assertEqual(len(session.store), 3)
        self.assertEqual(session.resolver.generation, 1)

        while not router.calls:
            await asyncio.sleep(0)
        router.resolve(0, route_for(router.calls[0]))
        route = await session.resolver.settle()
        self.assertEqual(route.points, [s.position for s in session.store.list()])

    async def test_registry_reuses_and_evicts(self):
        registry = InMemorySessionRegistry(max_sessions=2)
        first = registry.get("a")
        self.assertIs(registry.get("a"), first)
        registry.get("b")
        registry.get("a")
        registry.get("c")

        self.assertEqual(registry.session_ids(), ["a", "c"])

        registry.drop("a")
        self.assertEqual(registry.session_ids(), ["c"])
        registry.drop("missing")

    async def test_registry_seeds_demo(self):
        registry = InMemorySessionRegistry(seed_demo=True)
        session = registry.get("seeded")
        self.assertEqual(len(session.store), 3)
        session.close()


class SessionWithoutLoopTests(unittest.TestCase):
    def setUp(self):
        quiet_event_log(self)

    def test_clicks_outside_event_loop_do_not_raise(self):
        fetch = AsyncMock(return_value=route_for([(0.0, 0.0), (1.0, 1.0)]))
        session = PlanningSession.create("offline", fetch_route=fetch)

        session.bridge.on_map_click(0.0, 0.0)
        session.bridge.on_map_click(1.0, 1.0)

        self.assertEqual(len(session.store), 2)
        self.assertEqual(session.resolver.status(2), "dispatched")
        route = asyncio.run(session.resolver.settle())
        fetch.assert_awaited_once_with([(0.0, 0.0), (1.0, 1.0)])
        self.assertEqual(route.status, "applied")
        self.assertEqual(session.bridge.render_state().polyline, [(0.0, 0.0), (1.0, 1.0)])

    def test_registry_seeds_demo_from_sync_code(self):
        registry = InMemorySessionRegistry(seed_demo=True)
        session = registry.get("seeded-sync")
        self.assertEqual(len(session.store), 3)
        self.assertEqual(session.resolver.status(1), "dispatched")
        registry.drop("seeded-sync")


if __name__ == "__main__":
    unittest.main()
