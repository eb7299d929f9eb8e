from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from src.shortlinks.api.http.deps import get_session_identity
from src.shortlinks.core.models.session import SessionIdentity

router = APIRouter(prefix="/api/files", tags=["files"])


@router.get("", response_class=PlainTextResponse)
async def list_files(identity: SessionIdentity = Depends(get_session_identity)) -> str:
    """Get files"""
    return "ok"
