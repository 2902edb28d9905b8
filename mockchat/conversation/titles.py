"""Keyword-based conversation titles.

Rules are checked in order and the first hit wins, so earlier groups shadow
later ones (e.g. "plan a trip" is "Travel Planning", not "Work Planning").
Matching is plain substring matching on the lower-cased text.
"""

from typing import Iterable, Union

from .models import Message

DEFAULT_TITLE = "New Chat"
FALLBACK_SUFFIX = "Chat"

_TITLE_RULES: list[tuple[tuple[str, ...], str]] = [
    (("hello", "hi", "hey"), "Casual Greeting"),
    (("react", ".net", "api"), "Technical Discussion"),
    (("travel", "trip"), "Travel Planning"),
    (("music", "movie"), "Entertainment Chat"),
    (("plan", "task"), "Work Planning"),
    (("weather", "forecast"), "Weather Chat"),
]


def _role_and_content(message: Union[Message, dict]) -> tuple[str, str]:
    if isinstance(message, dict):
        return message.get("role", ""), message.get("content") or ""
    return message.role, message.content or ""


def generate_title(messages: Iterable[Union[Message, dict]]) -> str:
    """Derive a display title from the first user message."""
    first_user = None
    for m in messages:
        role, content = _role_and_content(m)
        if role == "user":
            first_user = content
            break

    if first_user is None or not first_user.strip():
        return DEFAULT_TITLE

    text = first_user.lower()
    for keywords, title in _TITLE_RULES:
        if any(kw in text for kw in keywords):
            return title

    head = " ".join(text.split()[:3])
    return f"{head[:1].upper()}{head[1:]} {FALLBACK_SUFFIX}"
