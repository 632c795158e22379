import unittest
from datetime import date

from planner.errors import ValidationError
from planner.tasks import TaskDraft, TaskView, filter_tasks
from planner.testing_utils import RecordingDataClient, signed_in_session
from shared.types import Task, TaskFilter, TaskPriority


def _task(task_id, *, completed=False, priority=TaskPriority.MEDIUM):
    return Task(id=task_id, title=task_id, completed=completed, priority=priority)


class FilterTasksTests(unittest.TestCase):
    def setUp(self):
        self.tasks = [
            _task("venue", priority=TaskPriority.HIGH),
            _task("cake", completed=True),
            _task("dress", completed=True, priority=TaskPriority.HIGH),
            _task("music", priority=TaskPriority.LOW),
        ]

    def test_completed_and_upcoming_partition_all(self):
        completed = filter_tasks(self.tasks, TaskFilter.COMPLETED)
        upcoming = filter_tasks(self.tasks, "upcoming")
        self.assertEqual(len(completed) + len(upcoming), len(self.tasks))
        self.assertFalse({t.id for t in completed} & {t.id for t in upcoming})
        self.assertEqual(filter_tasks(self.tasks, TaskFilter.ALL), self.tasks)

    def test_high_filter_matches_priority_only(self):
        high = filter_tasks(self.tasks, TaskFilter.HIGH)
        self.assertEqual([t.id for t in high], ["venue", "dress"])

    def test_unknown_filter_is_rejected(self):
        with self.assertRaises(ValueError):
            filter_tasks(self.tasks, "someday")


class TaskDraftTests(unittest.TestCase):
    def test_blank_title_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            TaskDraft(title="  ").to_row()
        self.assertEqual(ctx.exception.message, "Please enter a task title")

    def test_defaults(self):
        row = TaskDraft(title="Book venue", category=" ").to_row()
        self.assertEqual(row["category"], "General")
        self.assertEqual(row["priority"], "Medium Priority")
        self.assertIsNone(row["due_date"])
        self.assertIsNone(row["description"])
        self.assertFalse(row["completed"])


class TaskViewTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = RecordingDataClient()
        self.session = await signed_in_session()
        self.view = TaskView(self.session, self.client)
        await self.view.mount()

    async def test_add_task_round_trip(self):
        draft = TaskDraft(
            title="Book venue",
            description="Visit three places",
            due_date="2026-05-02",
            priority=TaskPriority.HIGH,
            category="Venue",
        )
        self.assertTrue(await self.view.add(draft))
        [task] = self.view.tasks
        self.assertEqual(task.title, "Book venue")
        self.assertEqual(task.description, "Visit three places")
        self.assertEqual(task.due_date, date(2026, 5, 2))
        self.assertEqual(task.priority, TaskPriority.HIGH)
        self.assertEqual(task.category, "Venue")
        self.assertFalse(task.completed)

    async def test_tasks_ordered_by_due_date_with_undated_last(self):
        await self.view.add(TaskDraft(title="No date"))
        await self.view.add(TaskDraft(title="Later", due_date="2026-09-01"))
        await self.view.add(TaskDraft(title="Sooner", due_date="2026-03-01"))
        self.assertEqual(
            [task.title for task in self.view.tasks], ["Sooner", "Later", "No date"]
        )

    async def test_blank_title_sets_error_without_insert(self):
        self.view.draft.title = ""
        self.assertFalse(await self.view.add())
        self.assertEqual(self.view.error, "Please enter a task title")
        self.assertEqual(self.client.count("insert"), 0)

    async def test_invalid_due_date(self):
        self.assertFalse(await self.view.add(TaskDraft(title="Cake", due_date="soon")))
        self.assertEqual(self.view.error, "Invalid due date: soon")

    async def test_toggle_complete_and_filters(self):
        await self.view.add(TaskDraft(title="Cake"))
        task_id = self.view.tasks[0].id
        self.assertTrue(await self.view.toggle_complete(task_id))
        self.assertTrue(self.view.tasks[0].completed)

        self.view.set_filter("completed")
        self.assertEqual(len(self.view.visible), 1)
        self.view.set_filter(TaskFilter.UPCOMING)
        self.assertEqual(self.view.visible, [])

        await self.view.toggle_complete(task_id)
        self.assertFalse(self.view.tasks[0].completed)

    async def test_delete_without_confirmation(self):
        await self.view.add(TaskDraft(title="Cake"))
        self.assertTrue(await self.view.delete(self.view.tasks[0].id))
        self.assertEqual(self.view.tasks, [])
        self.assertEqual(self.client.count("delete", "tasks"), 1)

    async def test_failed_toggle_records_notice(self):
        await self.view.add(TaskDraft(title="Cake"))
        self.client.failures["update"] = "permission denied"
        with self.assertLogs("planner.views", level="ERROR"):
            self.assertFalse(await self.view.toggle_complete(self.view.tasks[0].id))
        self.assertEqual(self.view.notices[-1].message, "Error updating task: permission denied")
        self.assertFalse(self.view.tasks[0].completed)


if __name__ == "__main__":
    unittest.main()
