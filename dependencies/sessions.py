from fastapi import Request

from rag_services.state import SessionRegistry
from services.storage import UploadStorage


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_storage(request: Request) -> UploadStorage:
    return request.app.state.storage
