"""Titles and summaries for saved coach conversations."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Sequence

from fitflex.models.schemas import ConversationMessage


TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "training": ("training", "workout", "plan", "exercise"),
    "running": ("run", "pace", "distance", "marathon", "5k", "10k"),
    "health": ("injury", "pain", "recovery", "rest", "sleep"),
    "nutrition": ("eat", "food", "hydration", "fuel", "diet"),
    "gear": ("shoes", "gear", "equipment", "watch"),
}

TITLE_PREVIEW_LENGTH = 30


def _date_label(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def generate_title(messages: Sequence[ConversationMessage], today: date | None = None) -> str:
    """
    Pick a title from the first user message.

    Example:
        >>> generate_title([ConversationMessage(content="Best shoes?", sender="user")])
        'Best shoes?'
    """
    today = today or date.today()
    first_user = next((message for message in messages if message.sender == "user"), None)
    if first_user is None:
        return f"Chat - {_date_label(today)}"

    content = first_user.content
    lowered = content.lower()
    if "training" in lowered or "plan" in lowered:
        return f"Training Discussion - {_date_label(today)}"
    if "pace" in lowered or "speed" in lowered:
        return "Pace & Performance Chat"
    if "injury" in lowered or "pain" in lowered:
        return "Health & Recovery Discussion"

    suffix = "..." if len(content) > TITLE_PREVIEW_LENGTH else ""
    return content[:TITLE_PREVIEW_LENGTH] + suffix


def extract_topics(messages: Sequence[ConversationMessage]) -> list[str]:
    """Topic groups mentioned anywhere in the conversation, in first-seen order."""
    topics: list[str] = []
    for message in messages:
        content = message.content.lower()
        for topic, words in TOPIC_KEYWORDS.items():
            if topic not in topics and any(word in content for word in words):
                topics.append(topic)
    return topics


def summarize_conversation(
    messages: Sequence[ConversationMessage],
    now: datetime | None = None,
) -> dict[str, Any]:
    """Message count, topics, last activity time and number of user questions."""
    last_activity = messages[-1].timestamp if messages and messages[-1].timestamp else None
    return {
        "message_count": len(messages),
        "topics": extract_topics(messages),
        "last_activity": last_activity or now or datetime.now(),
        "user_questions": sum(
            1 for message in messages if message.sender == "user" and "?" in message.content
        ),
    }
