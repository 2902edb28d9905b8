import time
import uuid
from typing import Literal, Optional

from pydantic import BaseModel, Field


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:12]}"


def _message_id() -> str:
    return new_id("m")


class Message(BaseModel):
    id: str = Field(default_factory=_message_id)
    role: Literal["user", "assistant"]
    content: str = ""
    ts: int = Field(default_factory=now_ms)  # epoch milliseconds
    attachments: Optional[list[str]] = None  # attachment ids from the upload flow


class ConversationMeta(BaseModel):
    title: Optional[str] = None
    system_prompt: Optional[str] = None  # tone selector last sent by the client


class ConversationSummary(BaseModel):
    """Sidebar row for the conversation list."""

    id: str
    title: str
    last: str = ""  # First 60 chars of the last message
    ts: Optional[int] = None
