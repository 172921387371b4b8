from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ChatHistoryMessage(BaseModel):
    sender: str = "user"
    text: str = ""


class ChatbotMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    conversation_history: List[ChatHistoryMessage] = Field(default_factory=list, alias="conversationHistory")
