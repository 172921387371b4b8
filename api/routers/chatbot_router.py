import logging

import openai
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from api.schemas.ChatbotSchema import ChatbotMessage
from api.services.chat_api import ChatAPI, is_chatbot_configured

logger = logging.getLogger(__name__)

chatbot_router = APIRouter(prefix="/api/chatbot", tags=["chatbot"])

NOT_CONFIGURED = {"error": "Chatbot service not configured", "message": "Please contact support or try again later."}


@chatbot_router.post("/message")
def chatbot_message(payload: ChatbotMessage):
    message = payload.message.strip()
    if not message:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Message is required"})

    if not is_chatbot_configured():
        logger.error("GROQ_API_KEY not configured")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=NOT_CONFIGURED)

    history = [item.model_dump() for item in payload.conversation_history]
    try:
        response = ChatAPI().reply(message, history)
    except openai.AuthenticationError:
        logger.error("Chatbot provider rejected the API key")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Invalid API key", "message": "Chatbot service configuration error."},
        )
    except openai.RateLimitError:
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"error": "Rate limit exceeded", "message": "Too many requests. Please try again in a moment."},
        )
    except Exception:
        logger.exception("Chatbot completion failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Failed to generate response",
                "message": "An error occurred while processing your message. Please try again.",
            },
        )

    return {"success": True, "response": response}


@chatbot_router.get("/health")
def chatbot_health():
    return {"status": "ok", "configured": is_chatbot_configured()}
