"""
AI assistant: listing description drafting and a property search chat.
The chat exposes one function, ``searchProperties``, which the model may call
to query available listings before it answers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from estate_api.config import settings
from estate_api.models.user import User
from estate_api.repositories.property import PropertyRepository, PropertySearchFilters
from estate_api.utils.rate_limit import description_rate_limiter, chat_rate_limiter
from estate_api.utils.validators import ValidationUtils
from estate_api.utils.exceptions import (
    APIException,
    ServiceNotConfiguredError,
    UpstreamServiceError,
    ValidationError,
)
import logging

logger = logging.getLogger(__name__)

SEARCH_TOOL_NAME = "searchProperties"
TOOL_RESULT_LIMIT = 6
HISTORY_ROLES = ("user", "model")

SYSTEM_INSTRUCTION = """You are a helpful real estate assistant for a Pakistani property website. You help users find properties, answer questions about real estate, and provide guidance.

Key rules:
- When users ask about finding properties, searching for homes, or anything related to property listings, use the searchProperties function to find relevant results.
- Prices are in PKR (Pakistani Rupees). Common units: 1 Lac = 100,000 PKR, 1 Crore = 10,000,000 PKR.
- Property types available: House, Apartment, Villa, Commercial, Land.
- Properties can be for Sale or Rent.
- Be conversational and helpful. Keep responses concise.
- If search returns no results, suggest broadening the search criteria.
- Do NOT use markdown formatting like **bold** or bullet points with *. Use plain text only."""

SEARCH_TOOL = {
    "function_declarations": [{
        "name": SEARCH_TOOL_NAME,
        "description": (
            "Search for real estate properties in the database based on filters. Use this when "
            "the user asks about available properties, wants to find homes, apartments, or any "
            "real estate listings."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": 'City, area, or neighborhood to search in (e.g. "Lahore", "DHA Phase 5")',
                },
                "type": {
                    "type": "string",
                    "description": "Property type",
                    "enum": ["House", "Apartment", "Villa", "Commercial", "Land"],
                },
                "purpose": {
                    "type": "string",
                    "description": "Whether the property is for sale or rent",
                    "enum": ["Sale", "Rent"],
                },
                "minPrice": {"type": "number", "description": "Minimum price in PKR"},
                "maxPrice": {"type": "number", "description": "Maximum price in PKR"},
                "bedrooms": {"type": "number", "description": "Number of bedrooms"},
                "minArea": {"type": "number", "description": "Minimum area in square feet"},
                "maxArea": {"type": "number", "description": "Maximum area in square feet"},
            },
        },
    }],
}


@dataclass
class FunctionCall:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ModelTurn:
    """One model response: text, and the first function call if it asked for one."""
    text: str = ""
    function_call: Optional[FunctionCall] = None


def _to_turn(response) -> ModelTurn:
    turn = ModelTurn()
    texts = []
    for candidate in response.candidates[:1]:
        for part in candidate.content.parts:
            if part.function_call and part.function_call.name and turn.function_call is None:
                turn.function_call = FunctionCall(
                    name=part.function_call.name,
                    args={key: value for key, value in part.function_call.args.items()},
                )
            elif part.text:
                texts.append(part.text)
    turn.text = "".join(texts)
    return turn


def _upstream_error(e: Exception, detail: str) -> UpstreamServiceError:
    if isinstance(e, google_exceptions.ResourceExhausted):
        return UpstreamServiceError("AI rate limit reached. Please try again later.", status_code=429)
    return UpstreamServiceError(detail)


class GeminiChat:
    """A multi-turn chat session with the search tool attached."""

    def __init__(self, session):
        self.session = session

    async def send_message(self, message: str) -> ModelTurn:
        return _to_turn(await self.session.send_message_async(message))

    async def send_function_response(self, name: str, payload: Dict[str, Any]) -> ModelTurn:
        part = genai.protos.Part(
            function_response=genai.protos.FunctionResponse(name=name, response=payload)
        )
        return _to_turn(await self.session.send_message_async(part))


class GeminiClient:
    """Thin async wrapper over the Gemini SDK."""

    def __init__(self, api_key: str, model_name: str = settings.gemini_model):
        genai.configure(api_key=api_key)
        self.model_name = model_name

    async def generate_text(self, prompt: str) -> str:
        model = genai.GenerativeModel(self.model_name)
        return _to_turn(await model.generate_content_async(prompt)).text

    def start_chat(self, history: List[Dict[str, Any]]) -> GeminiChat:
        model = genai.GenerativeModel(
            self.model_name,
            tools=[SEARCH_TOOL],
            system_instruction=SYSTEM_INSTRUCTION,
        )
        return GeminiChat(model.start_chat(history=history))


def get_ai_client() -> GeminiClient:
    """
    Dependency returning the configured model client.

    Raises:
        ServiceNotConfiguredError: If no API key is set
    """
    if not settings.gemini_api_key:
        raise ServiceNotConfiguredError("AI service not configured")
    return GeminiClient(settings.gemini_api_key)


def build_description_prompt(data: Dict[str, Any]) -> str:
    price = ValidationUtils.parse_decimal(data.get("price"))
    price_text = f"{price:,.0f}" if price is not None else str(data.get("price"))
    area = data.get("area")

    lines = [
        "Write a professional, engaging 2-3 paragraph property listing description for a real estate website. "
        "Use the following details:",
        "",
        f"- Property Type: {data.get('type')}",
        f"- Purpose: For {data.get('purpose') or 'Sale'}",
        f"- Price: PKR {price_text}",
        f"- Location: {data.get('location') or 'Not specified'}",
        f"- Bedrooms: {data.get('bedrooms') or 'Not specified'}",
        f"- Area: {f'{area} sq ft' if area else 'Not specified'}",
    ]
    if data.get("features"):
        lines.append(f"- Features: {data['features']}")
    lines += [
        "",
        "Requirements:",
        "- Write in a warm, professional tone suitable for a Pakistani real estate market",
        "- Highlight the key selling points",
        "- Keep it concise but compelling (2-3 paragraphs)",
        "- Do NOT include the price in the description (it's shown separately)",
        "- Do NOT use markdown formatting, just plain text",
        '- Do NOT start with "Welcome" or use cliché openings',
    ]
    return "\n".join(lines)


class AIService:
    """Rate-limited access to the language model."""

    def __init__(self, db_session: AsyncSession, client: GeminiClient):
        self.db = db_session
        self.client = client
        self.property_repo = PropertyRepository(db_session)

    async def generate_description(self, user: User, data: Dict[str, Any]) -> Dict[str, str]:
        """
        Draft listing copy for an agent.

        Raises:
            RateLimitExceededError: After the per-user quota for the window
            ValidationError: If ``type`` or ``price`` is missing
            UpstreamServiceError: If the model call fails
        """
        description_rate_limiter.hit(user.id)

        if not data.get("type") or not data.get("price"):
            raise ValidationError("At least type and price are required")

        try:
            text = await self.client.generate_text(build_description_prompt(data))
        except APIException:
            raise
        except Exception as e:
            logger.error(f"AI description generation failed for user {user.id}: {e}", exc_info=True)
            raise _upstream_error(e, "Failed to generate description")

        return {"description": text.strip()}

    async def search_for_tool(self, args: Dict[str, Any]) -> List:
        filters = PropertySearchFilters.from_tool_args(args)
        properties, _ = await self.property_repo.search_properties(
            filters,
            skip=0,
            limit=TOOL_RESULT_LIMIT,
            order_by="createdAt",
            order_direction="DESC"
        )
        return properties

    async def chat(self, client_ip: str, message: Optional[str], history: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Answer a chat message, running the listing search when the model asks for it.

        Returns:
            ``{reply, properties}``; properties are empty unless the search ran
        """
        chat_rate_limiter.hit(client_ip)

        if not message or not message.strip():
            raise ValidationError("Message is required")

        chat_history = [
            {"role": turn["role"], "parts": [turn.get("text") or ""]}
            for turn in history
            if turn.get("role") in HISTORY_ROLES
        ]

        try:
            session = self.client.start_chat(chat_history)
            turn = await session.send_message(message)

            call = turn.function_call
            if call and call.name == SEARCH_TOOL_NAME:
                properties = await self.search_for_tool(call.args)
                logger.info(f"Chat search tool returned {len(properties)} listing(s) for args {call.args}")

                follow_up = await session.send_function_response(SEARCH_TOOL_NAME, {
                    "results": [prop.to_compact() for prop in properties],
                    "totalFound": len(properties),
                })
                return {
                    "reply": follow_up.text.strip(),
                    "properties": [prop.to_dict() for prop in properties],
                }

            return {"reply": turn.text.strip(), "properties": []}
        except APIException:
            raise
        except Exception as e:
            logger.error(f"AI chat failed for {client_ip}: {e}", exc_info=True)
            raise _upstream_error(e, "Failed to process chat message")
