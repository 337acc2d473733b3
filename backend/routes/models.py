"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel


class CreateSession(BaseModel):
    language: str | None = None


class ChatBody(BaseModel):
    message: str


class ModelsBody(BaseModel):
    base_url: str
    api_key: str = ""
