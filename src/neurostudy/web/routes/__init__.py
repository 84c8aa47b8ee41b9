"""Route handlers for the Web API."""

from neurostudy.web.routes.health import router as health_router
from neurostudy.web.routes.preferences import router as preferences_router
from neurostudy.web.routes.tutor import router as tutor_router
from neurostudy.web.routes.notes import router as notes_router
from neurostudy.web.routes.tasks import router as tasks_router
from neurostudy.web.routes.focus import router as focus_router
from neurostudy.web.routes.chapters import router as chapters_router

__all__ = [
    "health_router",
    "preferences_router",
    "tutor_router",
    "notes_router",
    "tasks_router",
    "focus_router",
    "chapters_router",
]
