from dataclasses import dataclass

from src.shortlinks.core.services.database.record_store import RecordStore
from src.shortlinks.core.services.identity.resolver import IdentityResolver
from src.shortlinks.core.services.jwt import JwksService, JwtVerificationService
from src.shortlinks.core.services.session.session_manager import SessionManager
from src.shortlinks.core.storage.session_storage import SessionStorage


@dataclass(frozen=True)
class ApplicationDependencies:
    record_store: RecordStore
    session_storage: SessionStorage
    session_manager: SessionManager
    jwks_service: JwksService
    jwt_verify_service: JwtVerificationService
    identity_resolver: IdentityResolver
