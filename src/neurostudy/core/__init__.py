"""Core business logic.

Modules:
- modes: support modes and energy levels
- preferences: user preferences and energy persistence
- experience_profile: profile derivation and style-tag reconciliation
- tutor_prompt: tutor system prompt and greeting
- tutor_stream: SSE consumer and tutor conversation
- micro_steps: micro-step templates
- curriculum: chapter and practice-question loading
- daily_tasks: daily task selection and plan operations
- focus_session: focus sessions, XP, streaks and badges
- notes_generator: upload validation and study notes
- study_service: facade used by the web API and CLI
"""

__all__ = [
    "modes",
    "preferences",
    "experience_profile",
    "tutor_prompt",
    "tutor_stream",
    "micro_steps",
    "curriculum",
    "daily_tasks",
    "focus_session",
    "notes_generator",
    "study_service",
]
