# review_core/tests/test_visibility.py

import json
from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from review_core import selectors
from review_core.models import Task, UserRole
from review_core.workflows import TaskStatus
from review_core.workflows.reports import learner_progress


class VisibilityTests(TestCase):
    """
    Queue visibility per role, through the QuerySet selectors and the
    review_queue / review_audit_report commands.
    """

    @classmethod
    def setUpTestData(cls):
        cls.learner1 = User.objects.create_user(username="learner1", password="pass")
        cls.learner2 = User.objects.create_user(username="learner2", password="pass")
        cls.accessor1 = User.objects.create_user(username="accessor1", password="pass")
        cls.accessor2 = User.objects.create_user(username="accessor2", password="pass")

        for user, role in (
            (cls.learner1, "learner"),
            (cls.learner2, "learner"),
            (cls.accessor1, "accessor"),
            (cls.accessor2, "accessor"),
        ):
            UserRole.objects.create(user=user, role=role)

        def make(title, status, learner, accessor, course="CRS-1", resubmissions=0):
            return Task.objects.create(
                title=title,
                course_ref=course,
                learner=learner,
                accessor=accessor,
                status=status,
                resubmission_count=resubmissions,
            )

        cls.t_assigned = make("assigned", TaskStatus.ASSIGNED, cls.learner1, cls.accessor1)
        cls.t_submitted = make("submitted", TaskStatus.SUBMITTED, cls.learner1, cls.accessor1)
        cls.t_submitted_other = make("submitted other", TaskStatus.SUBMITTED, cls.learner2, cls.accessor2)
        cls.t_acc_pass = make("acc pass", TaskStatus.ACCESSOR_PASS, cls.learner2, cls.accessor1, resubmissions=1)
        cls.t_acc_fail = make("acc fail", TaskStatus.ACCESSOR_FAIL, cls.learner1, cls.accessor2)
        cls.t_iqa_pass = make("iqa pass", TaskStatus.IQA_PASS, cls.learner1, cls.accessor1, course="CRS-2")
        cls.t_iqa_fail = make("iqa fail", TaskStatus.IQA_FAIL, cls.learner2, cls.accessor1, resubmissions=2)
        cls.t_eqa_pass = make("eqa pass", TaskStatus.EQA_PASS, cls.learner1, cls.accessor1, course="CRS-2")
        cls.t_eqa_fail = make("eqa fail", TaskStatus.EQA_FAIL, cls.learner2, cls.accessor2)

    def ids(self, qs):
        return set(qs.values_list("id", flat=True))

    # ----------------------------------------------------------
    # Selectors
    # ----------------------------------------------------------
    def test_learner_sees_only_own_tasks(self):
        qs = selectors.tasks_for_learner(self.learner2)
        self.assertEqual(
            self.ids(qs),
            {self.t_submitted_other.pk, self.t_acc_pass.pk, self.t_iqa_fail.pk, self.t_eqa_fail.pk},
        )

    def test_accessor_queue(self):
        self.assertEqual(
            self.ids(selectors.tasks_awaiting_accessor_review(self.accessor1)),
            {self.t_submitted.pk},
        )
        self.assertNotIn(self.t_acc_fail.pk, self.ids(selectors.tasks_for_accessor(self.accessor1)))

    def test_iqa_views(self):
        self.assertEqual(
            self.ids(selectors.tasks_for_iqa()),
            {self.t_acc_pass.pk, self.t_iqa_pass.pk, self.t_iqa_fail.pk},
        )
        self.assertEqual(self.ids(selectors.tasks_awaiting_iqa_review()), {self.t_acc_pass.pk})

    def test_eqa_views(self):
        self.assertEqual(
            self.ids(selectors.tasks_for_eqa()),
            {self.t_iqa_pass.pk, self.t_eqa_pass.pk, self.t_eqa_fail.pk},
        )
        self.assertEqual(self.ids(selectors.tasks_awaiting_eqa_review()), {self.t_iqa_pass.pk})

    def test_assigned_tasks_are_invisible_to_reviewers(self):
        for qs in (selectors.tasks_for_iqa(), selectors.tasks_for_eqa()):
            self.assertNotIn(self.t_assigned.pk, self.ids(qs))

    def test_unknown_role_sees_nothing(self):
        self.assertFalse(selectors.visible_tasks("guest").exists())
        self.assertEqual(selectors.visible_tasks("admin").count(), Task.objects.count())

    def test_learner_progress_for_accessor(self):
        rows = selectors.learner_progress(self.accessor1)
        self.assertEqual(
            rows,
            [
                {"learner": self.learner1.pk, "total": 4, "pending": 1, "passed": 0, "failed": 0, "completed": 0},
                {"learner": self.learner2.pk, "total": 2, "pending": 0, "passed": 1, "failed": 0, "completed": 0},
            ],
        )

    def test_learner_progress_matches_in_memory_rows(self):
        expected = sorted(learner_progress(Task.objects.all(), self.accessor2), key=lambda r: r["learner"])
        self.assertEqual(selectors.learner_progress(self.accessor2), expected)
        self.assertEqual(expected[0]["failed"], 1)

    def test_learner_progress_without_tasks(self):
        newcomer = User.objects.create_user(username="accessor3", password="pass")
        self.assertEqual(selectors.learner_progress(newcomer), [])

    # ----------------------------------------------------------
    # review_queue
    # ----------------------------------------------------------
    def test_review_queue_table(self):
        out = StringIO()
        call_command("review_queue", role="accessor", user="accessor1", awaiting=True, stdout=out)

        lines = out.getvalue().strip().splitlines()
        self.assertEqual(lines[0], f"{self.t_submitted.pk}\tsubmitted\tlearner1\tsubmitted")
        self.assertEqual(lines[-1], "1 task(s)")

    def test_review_queue_json_accepts_role_alias(self):
        out = StringIO()
        call_command("review_queue", role="External Quality Assurance", awaiting=True, json=True, stdout=out)

        data = json.loads(out.getvalue())
        self.assertEqual([row["id"] for row in data], [self.t_iqa_pass.pk])
        self.assertEqual(data[0]["learner"], "learner1")
        self.assertEqual(data[0]["feedback"], {})

    def test_review_queue_errors(self):
        with self.assertRaises(CommandError):
            call_command("review_queue", role="janitor", stdout=StringIO())
        with self.assertRaises(CommandError):
            call_command("review_queue", role="learner", stdout=StringIO())
        with self.assertRaises(CommandError):
            call_command("review_queue", role="learner", user="ghost", stdout=StringIO())

    # ----------------------------------------------------------
    # review_audit_report
    # ----------------------------------------------------------
    def test_audit_report(self):
        out = StringIO()
        call_command("review_audit_report", stdout=out)
        report = json.loads(out.getvalue())

        self.assertEqual(report["total"], 9)
        self.assertEqual(report["awaiting_review"], 4)
        self.assertEqual(report["approved"], 1)
        self.assertEqual(report["rejected"], 3)
        self.assertEqual(report["resubmissions"], 3)
        self.assertEqual(report["by_status"]["completed"], 0)

    def test_audit_report_for_one_course(self):
        out = StringIO()
        call_command("review_audit_report", course="CRS-2", stdout=out)
        report = json.loads(out.getvalue())

        self.assertEqual(report["total"], 2)
        self.assertEqual(report["by_status"]["iqa_pass"], 1)
        self.assertEqual(report["by_status"]["eqa_pass"], 1)
