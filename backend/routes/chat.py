"""Chat session endpoints: transcript, turns, directive segments, call states."""

from fastapi import APIRouter, HTTPException

from agent_chat.directives import split
from agent_chat.pipeline import ChatSession

from backend import sessions

from .models import ChatBody, CreateSession

router = APIRouter()


def _session_or_404(session_id: str) -> ChatSession:
    session = sessions.get_session(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")
    return session


def _dump_messages(session: ChatSession) -> list[dict]:
    return [{"index": i, **m.model_dump()} for i, m in enumerate(session.messages)]


@router.post("/sessions")
async def create_session(body: CreateSession):
    """Start a conversation seeded with the system prompt."""
    try:
        session_id, session = sessions.create_session(body.language)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"id": session_id, "messages": _dump_messages(session)}


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    """Drop a conversation."""
    if not sessions.delete_session(session_id):
        raise HTTPException(404, "Session not found")
    return {"ok": True}


@router.get("/sessions/{session_id}/messages")
async def get_messages(session_id: str):
    """Get the transcript, system prompt included."""
    return _dump_messages(_session_or_404(session_id))


@router.delete("/sessions/{session_id}/messages")
async def clear_messages(session_id: str):
    """Clear the transcript back to the system prompt."""
    session = _session_or_404(session_id)
    if not session.clear():
        raise HTTPException(409, "Session is busy")
    return _dump_messages(session)


@router.post("/sessions/{session_id}/chat")
async def chat(session_id: str, body: ChatBody):
    """Send a user message and run the turn, including any function calls."""
    session = _session_or_404(session_id)
    if not body.message.strip():
        raise HTTPException(400, "Message is empty")
    result = await session.send(body.message)
    if result is None:
        raise HTTPException(409, "Session is busy")
    return result.model_dump()


@router.get("/sessions/{session_id}/messages/{index}/segments")
async def get_segments(session_id: str, index: int):
    """Split a message into text, directive and error segments for rendering."""
    messages = _session_or_404(session_id).messages
    if not 0 <= index < len(messages):
        raise HTTPException(404, "Message not found")
    return [seg.model_dump() for seg in split(messages[index].content)]


@router.get("/sessions/{session_id}/calls/{index}")
async def get_call(session_id: str, index: int):
    """Get the execution state of the directive in message *index*."""
    return _session_or_404(session_id).registry.get(index).model_dump()


@router.post("/sessions/{session_id}/calls/{index}/execute")
async def execute_call(session_id: str, index: int):
    """Run the directive in message *index* if it has never been run."""
    session = _session_or_404(session_id)
    executed = await session.execute_directive(index)
    return {"executed": executed, "messages": _dump_messages(session)}
