import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from core.config import settings
from core.exceptions import ValidationError
from dependencies.sessions import get_registry, get_storage
from models.chat import utcnow
from rag_services import multipart
from rag_services.state import SessionRegistry
from schemas.chat import (
    ConversationResponse,
    HealthResponse,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
    UploadResponse,
)
from services.storage import UploadStorage

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_body(request: Request, max_bytes: int) -> bytes:
    """Buffer the whole request body, refusing anything over ``max_bytes``."""
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise ValidationError("File size limit exceeded")
    return bytes(body)


def _find_part(parts, name: str) -> Optional[multipart.MultipartPart]:
    return next((part for part in parts if part.name == name), None)


@router.post("/upload-pdf", response_model=UploadResponse)
async def upload_pdf(
    request: Request,
    registry: SessionRegistry = Depends(get_registry),
    storage: UploadStorage = Depends(get_storage),
):
    """
    Upload a PDF and start a chat session over its text.

    Expects ``multipart/form-data`` with a ``pdf`` file field and an optional
    ``customPrompt`` text field that replaces the default instruction.

    Response:
    ```json
    {
        "sessionId": "session_3f2c...",
        "sessionInfo": {"textLength": 18234, "messageCount": 0},
        "filename": "report.pdf",
        "fileUrl": "/uploads/pdf-1717000000000-123456789.pdf",
        "message": "PDF uploaded and chat initialized successfully"
    }
    ```
    """
    boundary = multipart.extract_boundary(request.headers.get("content-type"))
    body = await read_body(request, settings.MAX_FILE_SIZE_MB * 1024 * 1024)
    parts = multipart.parse(body, boundary)

    file_part = _find_part(parts, "pdf")
    if file_part is None:
        raise ValidationError("No PDF file uploaded")
    if not file_part.data:
        raise ValidationError("Uploaded PDF is empty")

    filename = file_part.filename or "uploaded.pdf"
    allowed = tuple(ext.lower() for ext in settings.ALLOWED_EXTENSIONS)
    if not filename.lower().endswith(allowed):
        raise ValidationError("Invalid file type")

    prompt_part = _find_part(parts, "customPrompt")
    custom_prompt = prompt_part.data.decode("utf-8", errors="replace") if prompt_part else None

    session_id = await registry.create(file_part.data, custom_prompt)
    session_info = registry.get(session_id).get_info()
    try:
        file_url = await storage.save(file_part.data)
    except Exception:
        registry.discard(session_id)
        raise
    logger.info("Stored %s at %s for %s", filename, file_url, session_id)

    return UploadResponse(
        sessionId=session_id,
        sessionInfo=session_info,
        filename=filename,
        fileUrl=file_url,
        message="PDF uploaded and chat initialized successfully",
    )


@router.post("/send-message", response_model=SendMessageResponse)
async def send_message(
    payload: SendMessageRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """
    Ask a question about the uploaded PDF.

    Request body:
    ```json
    {"sessionId": "session_3f2c...", "message": "What is this about?"}
    ```

    Returns the reply together with the full conversation so far.
    """
    if not payload.sessionId or not payload.message or not payload.message.strip():
        raise ValidationError("Session ID and message are required")

    session = registry.get(payload.sessionId)
    reply = await session.send_message(payload.message)

    return SendMessageResponse(
        response=reply,
        conversationHistory=session.get_history(),
        timestamp=utcnow(),
    )


@router.get("/conversation/{session_id}", response_model=ConversationResponse)
async def get_conversation(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(session_id)
    return ConversationResponse(
        conversationHistory=session.get_history(),
        sessionInfo=session.get_info(),
    )


@router.post("/clear-conversation/{session_id}", response_model=MessageResponse)
async def clear_conversation(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    await registry.clear(session_id)
    return MessageResponse(message="Conversation cleared successfully")


@router.get("/health", response_model=HealthResponse)
async def health(registry: SessionRegistry = Depends(get_registry)):
    return HealthResponse(status="ok", sessions=len(registry))
