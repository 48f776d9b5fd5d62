import tempfile
import unittest

from concierge.router.llm_navigator import DEFAULT_MESSAGE, LLMNavigator, sanitize_action
from tests.helpers import FakeLLM, SlowLLM, fixture_index, read_events
from utils.tracer import RunTracer

ROUTE_REPLY = {
    "message": "Walk past the admin block.",
    "action": "show_route",
    "locations": [
        {"building_id": "pulchowk-library", "building_name": "Pulchowk Library", "role": "start"},
        {"building_id": "campus-mess", "building_name": "Campus Mess", "role": "end"},
    ],
}


class LLMNavigatorTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.index = fixture_index()

    def navigator(self, reply, **kwargs):
        return LLMNavigator(self.index, client=FakeLLM(reply), **kwargs)

    async def test_valid_route(self):
        navigator = self.navigator(ROUTE_REPLY)
        response = await navigator.resolve("how do I walk to dinner from books")
        self.assertEqual(response.action, "show_route")
        self.assertEqual(response.intent, "route_navigation")
        self.assertTrue(response.verified)
        self.assertEqual(response.message, "Walk past the admin block.")
        self.assertEqual(
            [(loc.building_id, loc.role) for loc in response.locations],
            [("pulchowk-library", "start"), ("campus-mess", "end")],
        )
        self.assertEqual(
            response.sources, ["campus_data:buildings", "source_type:map_data", "llm:fake-model"]
        )
        call = navigator.client.calls[0]
        self.assertEqual(call["response_format"], {"type": "json_object"})
        for building in self.index.buildings:
            self.assertIn(building.id, call["prompt"])

    async def test_route_endpoints_are_reordered(self):
        reply = {
            "action": "show_route",
            "locations": [
                {"building_id": "campus-mess", "role": "end"},
                {"building_id": "pulchowk-library", "role": "start"},
            ],
        }
        response = await self.navigator(reply).resolve("route please")
        self.assertEqual(
            [(loc.building_id, loc.role) for loc in response.locations],
            [("pulchowk-library", "start"), ("campus-mess", "end")],
        )
        self.assertEqual(response.message, DEFAULT_MESSAGE)

    async def test_invented_buildings_are_dropped(self):
        reply = {
            "action": "show_multiple_locations",
            "locations": [
                {"building_id": "mars-base", "building_name": "Mars Base"},
                {"building_id": "dean-office"},
                {"building_name": "Hall"},
            ],
        }
        response = await self.navigator(reply).resolve("show me the offices")
        self.assertEqual([loc.building_id for loc in response.locations], ["dean-office"])
        self.assertEqual(response.locations[0].role, "destination")

    async def test_route_missing_an_endpoint_is_rejected(self):
        reply = {
            "action": "show_route",
            "locations": [
                {"building_id": "pulchowk-library"},
                {"building_id": "moon-gate", "building_name": "Moon Gate"},
            ],
        }
        self.assertIsNone(await self.navigator(reply).resolve("route to the moon gate"))

    async def test_route_with_same_building_twice_is_rejected(self):
        reply = {
            "action": "show_route",
            "locations": [{"building_id": "campus-mess"}, {"building_name": "Campus Mess"}],
        }
        self.assertIsNone(await self.navigator(reply).resolve("route"))

    async def test_name_lookup_when_id_is_wrong(self):
        reply = {"action": "show_location", "locations": [{"building_id": "lib-1", "building_name": "Pulchowk Library"}]}
        response = await self.navigator(reply).resolve("where can I read")
        self.assertEqual([loc.building_id for loc in response.locations], ["pulchowk-library"])
        self.assertEqual(response.intent, "location_lookup")

    async def test_unknown_action_becomes_show_location(self):
        reply = {"action": "teleport", "locations": [{"building_id": "fsu-clinic"}]}
        response = await self.navigator(reply).resolve("where is a doctor")
        self.assertEqual(response.action, "show_location")
        self.assertEqual(sanitize_action(None), "show_location")
        self.assertEqual(sanitize_action("show_multiple_locations"), "show_multiple_locations")

    async def test_unusable_output(self):
        for reply in ("not json at all", "[1, 2]", '{"locations": "dean-office"}', '{"locations": []}', ""):
            with self.subTest(reply=reply):
                self.assertIsNone(await self.navigator(reply).resolve("where is it"))

    async def test_json_wrapped_in_prose(self):
        reply = 'Sure! {"action": "show_location", "locations": [{"building_id": "dean-office"}]} Hope that helps.'
        response = await self.navigator(reply).resolve("dean")
        self.assertEqual(response.locations[0].building_id, "dean-office")

    async def test_client_error_is_traced(self):
        with tempfile.TemporaryDirectory() as tmp:
            tracer = RunTracer(tmp)
            navigator = self.navigator(RuntimeError("provider down"), tracer=tracer)
            self.assertIsNone(await navigator.resolve("where is it"))
            events = read_events(tracer)
            self.assertEqual(events[-1]["type"], "navigator_error")
            self.assertIn("provider down", events[-1]["error"])

    async def test_timeout_is_a_miss(self):
        navigator = LLMNavigator(self.index, client=SlowLLM(0.5, ROUTE_REPLY), timeout=0.05)
        self.assertIsNone(await navigator.resolve("route please"))

    async def test_blank_query_skips_the_model(self):
        navigator = self.navigator(ROUTE_REPLY)
        self.assertIsNone(await navigator.resolve(""))
        self.assertEqual(navigator.client.calls, [])


if __name__ == "__main__":
    unittest.main()
