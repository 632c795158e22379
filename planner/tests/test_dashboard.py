import asyncio
import unittest

from planner.dashboard import DashboardView, compute_stats
from planner.testing_utils import RecordingDataClient, signed_in_session
from shared.types import Task


class ComputeStatsTests(unittest.TestCase):
    def test_compute_stats(self):
        tasks = [
            Task(id="1", title="Venue"),
            Task(id="2", title="Cake", completed=True),
            Task(id="3", title="Dress"),
            Task(id="4", title="Music"),
            Task(id="5", title="Flowers"),
        ]
        stats = compute_stats(
            [{"actual": 1000}, {"actual": 250.5}, {"actual": None}],
            tasks,
            [{"rsvp_status": "Accepted"}, {"rsvp_status": "Pending"},
             {"rsvp_status": "Accepted"}, {"rsvp_status": None}],
            total_budget=25000,
        )
        self.assertEqual(stats.total_spent, 1250.5)
        self.assertEqual(stats.upcoming_tasks, 4)
        self.assertEqual(stats.completed_tasks, 1)
        self.assertEqual([t.title for t in stats.upcoming_list], ["Venue", "Dress", "Music"])
        self.assertEqual(stats.total_guests, 4)
        self.assertEqual(stats.rsvp_count, 2)
        self.assertEqual(stats.pending_rsvps, 2)
        self.assertAlmostEqual(stats.budget_percentage, 5.002)

    def test_empty_budget_percentage(self):
        self.assertEqual(compute_stats([], [], [], total_budget=0).budget_percentage, 0.0)


class DashboardViewTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = RecordingDataClient()
        self.session = await signed_in_session()
        user_id = self.session.identity.user_id
        await self.client.insert("expenses", [
            {"user_id": user_id, "category": "Venue", "item": "Deposit",
             "estimated": 5000.0, "actual": 2500.0, "status": "Paid"},
            {"user_id": "someone-else", "category": "Venue", "item": "Hall",
             "estimated": 1.0, "actual": 999.0, "status": "Paid"},
        ])
        await self.client.insert("tasks", [
            {"user_id": user_id, "title": "Cake", "due_date": "2026-06-01", "completed": True},
            {"user_id": user_id, "title": "Dress", "due_date": "2026-04-01", "completed": False},
        ])
        await self.client.insert("guests", [
            {"user_id": user_id, "name": "Ada", "rsvp_status": "Accepted"},
            {"user_id": user_id, "name": "Bob", "rsvp_status": "Declined"},
        ])
        self.navigated = []
        self.view = DashboardView(
            self.session, self.client, on_navigate=self.navigated.append
        )
        await self.view.mount()

    async def test_stats_are_scoped_to_user(self):
        stats = self.view.stats
        self.assertEqual(stats.total_spent, 2500.0)
        self.assertEqual(stats.completed_tasks, 1)
        self.assertEqual(stats.upcoming_tasks, 1)
        self.assertEqual(stats.upcoming_list[0].title, "Dress")
        self.assertEqual(stats.total_guests, 2)
        self.assertEqual(stats.rsvp_count, 1)
        self.assertAlmostEqual(stats.budget_percentage, 10.0)

    async def test_queries_run_concurrently(self):
        gates = [asyncio.Event() for _ in range(3)]
        self.client.gates.extend(gates)
        before = self.client.count("select")
        pending = asyncio.create_task(self.view.refresh())
        for _ in range(3):
            await asyncio.sleep(0)
        self.assertEqual(self.client.count("select") - before, 3)
        self.assertFalse(pending.done())
        for gate in gates:
            gate.set()
        await pending
        self.assertEqual(self.view.stats.total_spent, 2500.0)

    async def test_failed_fetch_keeps_previous_stats(self):
        previous = self.view.stats
        self.client.failures["select"] = "permission denied for table guests"
        with self.assertLogs("planner.dashboard", level="ERROR"):
            await self.view.refresh()
        self.assertIs(self.view.stats, previous)
        self.assertIn("permission denied", self.view.notices[-1].message)

    async def test_sign_out_resets_stats(self):
        await self.session.sign_out()
        self.assertEqual(self.view.stats.total_spent, 0.0)
        self.assertEqual(self.view.stats.total_guests, 0)

    async def test_navigate(self):
        self.view.navigate("budget")
        self.assertEqual(self.navigated, ["budget"])
        with self.assertRaises(ValueError):
            self.view.navigate("guests")


if __name__ == "__main__":
    unittest.main()
