"""Pydantic schemas for the Web API.

Serialization models for preferences, profile, tutor chat, notes, daily
tasks, focus sessions, progress and curriculum.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


# =============================================================================
# MODES & PREFERENCES
# =============================================================================


class SupportModeResponse(BaseModel):
    """A support mode the student can enable."""

    mode: str
    label: str
    subtitle: str = ""
    description: str = ""
    icon: str = ""
    features: list[str] = Field(default_factory=list)
    enabled: bool = False


class SupportModeListResponse(BaseModel):
    modes: list[SupportModeResponse]
    count: int


class PreferencesPayload(BaseModel):
    """User-tunable settings (request and response)."""

    selected_modes: list[str] = Field(default_factory=list)
    timer_preset: int = 25
    reading_large_font: bool = False
    reading_increased_spacing: bool = False
    reading_one_section_at_a_time: bool = False
    reading_highlight_current: bool = False
    sensory_reduce_motion: bool = False
    sensory_sound_off: bool = True
    motor_large_buttons: bool = False


class ModeToggleRequest(BaseModel):
    enabled: bool


class EnergyRequest(BaseModel):
    energy_level: Literal["low", "normal", "high"]


class ReadingModeResponse(BaseModel):
    large_font: bool
    increased_spacing: bool
    one_section_at_a_time: bool
    highlight_current: bool
    dyslexia_font: bool


class SensoryModeResponse(BaseModel):
    reduce_motion: bool
    muted_colors: bool
    no_flashing: bool


class ProfileResponse(BaseModel):
    """Derived experience profile."""

    default_timer_minutes: int
    max_tasks_today: int
    show_quick_start: bool
    micro_steps_granularity: str
    show_ending_soon_banner: bool
    untimed: bool
    math_step_mode: bool
    body_classes: list[str]
    large_buttons: bool
    reduced_choices: bool
    consistent_layout: bool
    reading_mode: ReadingModeResponse
    sensory_mode: SensoryModeResponse
    energy_message: str
    active_modes: list[str]
    energy_level: str


# =============================================================================
# TUTOR
# =============================================================================


class ChatMessageSchema(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChapterContextSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    summary: str = ""
    key_points: list[str] = Field(default_factory=list, alias="keyPoints")


class TutorChatRequest(BaseModel):
    """Body of POST /api/tutor/chat."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessageSchema]
    modes: list[str] = Field(default_factory=list)
    chapter_context: ChapterContextSchema | None = Field(
        default=None, alias="chapterContext"
    )


class GreetingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    modes: list[str] = Field(default_factory=list)
    chapter_context: ChapterContextSchema | None = Field(
        default=None, alias="chapterContext"
    )


class GreetingResponse(BaseModel):
    greeting: str


# =============================================================================
# NOTES
# =============================================================================


class NotesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str = ""
    detail_level: Literal["brief", "standard", "comprehensive"] = Field(
        default="standard", alias="detailLevel"
    )
    modes: list[str] = Field(default_factory=list)


class StructuredNotesResponse(BaseModel):
    keyPoints: list[str] = Field(default_factory=list)
    mainThemes: list[str] = Field(default_factory=list)
    importantDetails: list[str] = Field(default_factory=list)
    actionItems: list[str] = Field(default_factory=list)


class NotesResponse(BaseModel):
    summary: str
    notes: StructuredNotesResponse


class UploadResponse(BaseModel):
    filename: str
    content: str
    length: int


# =============================================================================
# DAILY TASKS
# =============================================================================


class TaskResponse(BaseModel):
    id: str
    date: str
    title: str
    subject_name: str
    chapter_id: str | None = None
    estimated_minutes: int
    status: str
    order_index: int
    micro_steps: list[str]
    completed_micro_steps: int


class TaskListResponse(BaseModel):
    date: str
    tasks: list[TaskResponse]
    count: int
    max_tasks_today: int


class GenerateTasksRequest(BaseModel):
    date: str | None = None
    seed: int | None = None


class MoveTaskRequest(BaseModel):
    direction: Literal["up", "down"]


# =============================================================================
# FOCUS SESSIONS & PROGRESS
# =============================================================================


class FocusStartRequest(BaseModel):
    task_id: str | None = None
    planned_duration: int | None = Field(default=None, ge=1)


class FocusEndRequest(BaseModel):
    completed: bool
    reason: Literal["completed", "user_stopped", "tab_left"]


class FocusSessionResponse(BaseModel):
    id: str
    task_id: str | None = None
    planned_duration: int
    started_at: str
    ended_at: str | None = None
    actual_duration: int | None = None
    completed: bool | None = None
    end_reason: str | None = None
    xp_earned: int | None = None


class FocusEndResponse(BaseModel):
    session: FocusSessionResponse
    new_badges: list[str] = Field(default_factory=list)


class ProgressResponse(BaseModel):
    total_xp: int
    total_focused_minutes: int
    total_sessions_completed: int
    current_streak: int
    longest_streak: int
    last_session_date: str | None = None
    badges: list[str]


# =============================================================================
# CURRICULUM
# =============================================================================


class QuestionResponse(BaseModel):
    id: str
    chapter_id: str
    question_text: str
    question_type: str
    options: list[str]
    correct_answer: str
    is_math: bool
    math_steps: list[str]


class ChapterResponse(BaseModel):
    id: str
    subject_name: str
    title: str
    board: str
    grade: int
    chapter_number: int
    summary: str
    key_points: list[str]
    questions: list[QuestionResponse] = Field(default_factory=list)


class ChapterListResponse(BaseModel):
    chapters: list[ChapterResponse]
    count: int
