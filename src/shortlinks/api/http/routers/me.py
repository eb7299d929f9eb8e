from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.shortlinks.api.http.deps import get_session_identity
from src.shortlinks.core.models.session import SessionIdentity

router = APIRouter(prefix="/api/me", tags=["identity"])


class MeResponse(BaseModel):
    user_id: str


@router.get("", response_model=MeResponse)
async def get_me(identity: SessionIdentity = Depends(get_session_identity)) -> MeResponse:
    """Identifier of the user the current session resolves to."""
    return MeResponse(user_id=identity.user_id)
