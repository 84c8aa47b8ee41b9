"""Micro-step templates for study tasks.

Two fixed templates: a 5-step outline and a 16-step breakdown used when
the profile asks for detailed granularity (ADHD mode).
"""

from __future__ import annotations

NORMAL_STEPS = (
    "Open {title} materials",
    "Read the summary",
    "Review key points",
    "Attempt practice questions",
    "Note any doubts",
)

DETAILED_STEPS = (
    "Find a quiet spot to study",
    "Open {title} materials",
    "Take 3 deep breaths",
    "Read the first paragraph of the summary",
    "Pause and think about what you read",
    "Continue reading the rest of the summary",
    "Look at the first key point",
    "Try to explain it in your own words",
    "Continue with remaining key points",
    "Open the practice questions",
    "Read the first question carefully",
    "Try to answer without looking at options",
    "Check your answer",
    "Continue with remaining questions",
    "Write down any concepts you need to revisit",
    "Take a moment to celebrate your progress!",
)


def generate_micro_steps(task_title: str, detailed: bool) -> list[str]:
    """Build the ordered micro-steps for a task."""
    template = DETAILED_STEPS if detailed else NORMAL_STEPS
    return [step.replace("{title}", task_title) for step in template]
