from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Any, Optional

from app.core.config import settings
from app.services.assistant import generate_educational_response

router = APIRouter()


class AskRequest(BaseModel):
    question: Optional[Any] = None
    context: Optional[Any] = None


@router.post("/ask")
async def ask(body: AskRequest):
    """Answer a space-weather question using the dashboard's current data as context."""
    if not body.question or not isinstance(body.question, str):
        raise HTTPException(400, "question is required and must be a string")
    if not isinstance(body.context, dict):
        raise HTTPException(400, "context is required and must be an object")

    answer = await generate_educational_response(body.question, body.context)
    return {
        "success": True,
        "response": answer,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health")
def assistant_health():
    configured = bool(settings.COHERE_API_KEY)
    return {
        "success": True,
        "cohereConfigured": configured,
        "message": "Cohere API is configured" if configured
        else "Cohere API is NOT configured. Set COHERE_API_KEY in .env",
    }
