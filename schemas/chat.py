from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from models.chat import ChatMessage, SessionInfo


# Request Schemas
class SendMessageRequest(BaseModel):
    # Both optional so a missing field is reported as a 400, not a 422
    sessionId: Optional[str] = None
    message: Optional[str] = None


# Response Schemas
class UploadResponse(BaseModel):
    sessionId: str
    sessionInfo: SessionInfo
    filename: str
    fileUrl: str
    message: str


class SendMessageResponse(BaseModel):
    response: str
    conversationHistory: List[ChatMessage]
    timestamp: datetime


class ConversationResponse(BaseModel):
    conversationHistory: List[ChatMessage]
    sessionInfo: SessionInfo


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    sessions: int
