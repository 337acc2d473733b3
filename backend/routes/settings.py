"""Health check, settings and model listing endpoints."""

from fastapi import APIRouter, HTTPException

from agent_chat.llm import HttpChatLLM, LLMError

from backend import storage

from .models import ModelsBody

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings():
    """Get global app settings (model connection, chat options)."""
    return storage.get_config()


@router.patch("/settings")
async def update_settings(body: dict):
    """Update global app settings (partial merge)."""
    return storage.update_config(body)


@router.post("/models")
async def list_models(body: ModelsBody):
    """List the models offered by an OpenAI-compatible backend."""
    llm = HttpChatLLM(base_url=body.base_url, api_key=body.api_key, timeout=10.0)
    try:
        return {"models": await llm.list_models()}
    except LLMError as e:
        raise HTTPException(502, str(e))
