"""Tests for micro-steps, curriculum loading and daily task selection."""

import random

import pytest

from neurostudy.core.curriculum import CurriculumLoadError, load_curriculum_file
from neurostudy.core.daily_tasks import (
    Task,
    TaskNotFoundError,
    TaskStatus,
    complete_micro_step,
    move_task,
    remove_task,
    select_daily_tasks,
)
from neurostudy.core.experience_profile import derive_profile
from neurostudy.core.micro_steps import generate_micro_steps
from neurostudy.core.modes import EnergyLevel, SupportMode
from neurostudy.core.preferences import UserPreferences

SUBJECTS = ["Mathematics", "English", "Science"]


def profile_for(*modes, energy=EnergyLevel.NORMAL, timer_preset=25):
    return derive_profile(
        UserPreferences(selected_modes=tuple(modes), timer_preset=timer_preset), energy
    )


class TestMicroSteps:
    """Tests for generate_micro_steps."""

    def test_normal_has_five_steps(self):
        steps = generate_micro_steps("Fractions", detailed=False)
        assert len(steps) == 5
        assert steps[0] == "Open Fractions materials"

    def test_detailed_has_sixteen_steps(self):
        steps = generate_micro_steps("Fractions", detailed=True)
        assert len(steps) == 16
        assert "Take 3 deep breaths" in steps
        assert "Open Fractions materials" in steps

    def test_deterministic(self):
        assert generate_micro_steps("A", True) == generate_micro_steps("A", True)


class TestCurriculum:
    """Tests for curriculum file loading."""

    def test_demo_curriculum(self, demo_chapters):
        ids = [c.id for c in demo_chapters]
        assert "math-08-01" in ids
        rational = next(c for c in demo_chapters if c.id == "math-08-01")
        assert rational.subject_name == "Mathematics"
        assert rational.questions
        assert any(q.is_math and q.math_steps for q in rational.questions)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CurriculumLoadError):
            load_curriculum_file(tmp_path / "nope.yaml")

    def test_invalid_entry(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("chapters:\n  - title: No id\n")
        with pytest.raises(CurriculumLoadError):
            load_curriculum_file(path)


class TestSelectDailyTasks:
    """Tests for select_daily_tasks."""

    def test_one_task_per_subject(self, demo_chapters):
        tasks = select_daily_tasks(demo_chapters, SUBJECTS, profile_for(), seed=1)

        assert len(tasks) == 3
        assert sorted(t.subject_name for t in tasks) == sorted(SUBJECTS)
        assert [t.order_index for t in tasks] == [0, 1, 2]

    def test_capped_by_profile(self, demo_chapters):
        tasks = select_daily_tasks(
            demo_chapters, SUBJECTS, profile_for(energy=EnergyLevel.LOW), seed=1
        )
        assert len(tasks) == 2

    def test_subjects_without_chapters_skipped(self, demo_chapters):
        tasks = select_daily_tasks(demo_chapters, ["History", "English"], profile_for(), seed=1)
        assert [t.subject_name for t in tasks] == ["English"]

    def test_timer_and_granularity_from_profile(self, demo_chapters):
        profile = profile_for(SupportMode.ADHD)
        tasks = select_daily_tasks(demo_chapters, SUBJECTS, profile, seed=3)

        for task in tasks:
            assert task.estimated_minutes == 25
            assert len(task.micro_steps) == 16
            assert task.status == TaskStatus.PENDING
            assert task.completed_micro_steps == 0

    def test_task_refers_to_chapter(self, demo_chapters):
        by_id = {c.id: c for c in demo_chapters}
        for task in select_daily_tasks(demo_chapters, SUBJECTS, profile_for(), seed=5):
            chapter = by_id[task.chapter_id]
            assert chapter.title == task.title
            assert chapter.subject_name == task.subject_name

    def test_reproducible_with_seed(self, demo_chapters):
        a = select_daily_tasks(demo_chapters, SUBJECTS, profile_for(), seed=42, today="2024-01-01")
        b = select_daily_tasks(demo_chapters, SUBJECTS, profile_for(), seed=42, today="2024-01-01")
        assert [(t.chapter_id, t.order_index) for t in a] == [(t.chapter_id, t.order_index) for t in b]

    def test_explicit_rng(self, demo_chapters):
        tasks = select_daily_tasks(demo_chapters, SUBJECTS, profile_for(), rng=random.Random(0))
        assert len(tasks) == 3

    def test_no_chapters(self):
        assert select_daily_tasks([], SUBJECTS, profile_for(), seed=1) == []

    def test_date_stamp(self, demo_chapters):
        tasks = select_daily_tasks(demo_chapters, SUBJECTS, profile_for(), seed=1, today="2024-03-01")
        assert {t.date for t in tasks} == {"2024-03-01"}


def make_plan(n=3) -> list[Task]:
    return [
        Task(title=f"T{i}", subject_name="S", estimated_minutes=25, order_index=i, micro_steps=["a", "b"])
        for i in range(n)
    ]


class TestPlanOperations:
    """Tests for move_task, remove_task and complete_micro_step."""

    def test_move_down(self):
        plan = make_plan()
        moved = move_task(plan, plan[0].id, "down")
        assert [t.title for t in moved] == ["T1", "T0", "T2"]
        assert [t.order_index for t in moved] == [0, 1, 2]

    def test_move_up_at_top_is_noop(self):
        plan = make_plan()
        assert [t.title for t in move_task(plan, plan[0].id, "up")] == ["T0", "T1", "T2"]

    def test_move_down_at_bottom_is_noop(self):
        plan = make_plan()
        assert [t.title for t in move_task(plan, plan[2].id, "down")] == ["T0", "T1", "T2"]

    def test_move_unknown(self):
        with pytest.raises(TaskNotFoundError):
            move_task(make_plan(), "missing", "up")

    def test_remove_renumbers(self):
        plan = make_plan()
        remaining = remove_task(plan, plan[1].id)
        assert [t.title for t in remaining] == ["T0", "T2"]
        assert [t.order_index for t in remaining] == [0, 1]

    def test_complete_micro_step(self):
        task = make_plan(1)[0]
        assert task.current_step == "a"

        complete_micro_step(task)
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.current_step == "b"

        complete_micro_step(task)
        complete_micro_step(task)
        assert task.completed_micro_steps == 2
        assert task.current_step is None
