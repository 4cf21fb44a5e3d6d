"""AI assistant endpoints: listing descriptions and search chat."""

from fastapi import APIRouter, Depends, Request

from estate_api.models.user import User
from estate_api.middleware.validation import get_client_ip
from estate_api.services.ai import AIService
from estate_api.schemas.ai import DescriptionRequest, DescriptionResponse, ChatRequest, ChatResponse
from estate_api.schemas.error import get_error_responses
from estate_api.utils.dependencies import get_ai_service, require_agent

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post(
    "/generate-description",
    response_model=DescriptionResponse,
    summary="Draft a listing description",
    description="Agents only; limited to 10 requests per agent per hour.",
    responses=get_error_responses(400, 401, 403, 429, 500)
)
async def generate_description(
    description_data: DescriptionRequest,
    current_user: User = Depends(require_agent),
    ai_service: AIService = Depends(get_ai_service)
):
    return await ai_service.generate_description(current_user, description_data.model_dump())


@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Chat with the property assistant",
    description="Public; limited to 20 requests per client IP per hour.",
    responses=get_error_responses(400, 429, 500)
)
async def chat(
    chat_data: ChatRequest,
    request: Request,
    ai_service: AIService = Depends(get_ai_service)
):
    history = [turn.model_dump() for turn in chat_data.history]
    return await ai_service.chat(get_client_ip(request), chat_data.message, history)
