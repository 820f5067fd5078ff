"""Coach chat and conversation helper endpoints."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from fitflex.database import get_db
from fitflex.dependencies import get_current_user_id
from fitflex.models.schemas import ChatReply, ChatRequest, ConversationRequest
from fitflex.services.coach import CoachNotConfiguredError, CoachService
from fitflex.services.conversations import generate_title, summarize_conversation
from fitflex.services.preferences import get_preferences, zones_for_user


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["coach"])


@router.post("/chat", response_model=ChatReply)
async def chat(
    payload: ChatRequest,
    db: Annotated[Session, Depends(get_db)],
    user_id: Annotated[str, Depends(get_current_user_id)],
):
    """
    Send a message to the coach.

    When the runner has saved heart rate settings their zones are given to
    the coach. Plan requests come back with a structured training plan when
    one could be extracted.
    """
    try:
        coach = CoachService()
    except CoachNotConfiguredError:
        return JSONResponse(status_code=500, content={"error": "API key not configured"})

    try:
        prefs = get_preferences(db, user_id)
        zones = None
        if prefs.max_hr or prefs.lthr or prefs.age:
            zones, _ = zones_for_user(db, user_id)

        return await coach.chat(
            payload.message,
            payload.conversation_history,
            zones=zones,
            zone_method=prefs.zone2_method,
        )
    except Exception:
        logger.exception("Error calling Claude API")
        return JSONResponse(status_code=500, content={"error": "Failed to get AI response"})


@router.get("/conversations")
async def conversation_structure() -> dict:
    """Describe the conversation format kept by the client."""
    return {
        "message": "Conversation API ready. Use POST to save conversations.",
        "structure": {
            "conversations": "Array of conversation objects",
            "format": {
                "id": "string",
                "title": "string",
                "messages": "Array of message objects",
                "created_at": "Date",
                "updated_at": "Date",
            },
        },
    }


@router.post("/conversations")
async def conversation_action(payload: ConversationRequest):
    """Generate a title for, or summarise, a conversation."""
    messages = payload.conversation_data.messages

    if payload.action == "generateTitle":
        return {"title": generate_title(messages)}
    if payload.action == "summarize":
        return {"summary": summarize_conversation(messages)}

    return JSONResponse(status_code=400, content={"error": "Unknown action"})
