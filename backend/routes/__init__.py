"""FastAPI API endpoints under /api.

Endpoint groups: health + settings + model listing, and chat sessions
(transcript, turns, message segments, function-call states). Each session's
child resources are nested under /api/sessions/{session_id}/.
"""

from fastapi import APIRouter

from .chat import router as chat_router
from .settings import router as settings_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(chat_router)
