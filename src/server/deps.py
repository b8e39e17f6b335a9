# src/server/deps.py
"""
Beroenden för routrarna. Varje provider byggs en gång per process
(lru_cache) från Settings. Testerna byter ut dem via app.dependency_overrides.
"""
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.errors import Unauthorized
from src.server.db.session import build_engine, init_db
from src.server.settings.config import Settings, get_settings
from src.services.credentials import AdminAuthenticator
from src.services.intake import IntakePipeline
from src.services.notifications import EmailNotifier
from src.services.quotation_repository import (
    FirebaseQuotationRepository,
    QuotationRepository,
    SqlQuotationRepository,
)
from src.services.tokens import AdminIdentity, TokenService
from src.services.uploads import UploadStore


def build_repository(settings: Settings) -> QuotationRepository:
    if settings.uses_firebase:
        return FirebaseQuotationRepository(
            base_url=settings.database_url,
            auth_token=settings.firebase_auth_token,
        )
    engine = build_engine(settings.database_url, echo=settings.debug)
    init_db(engine)
    return SqlQuotationRepository(engine)


@lru_cache
def get_repository() -> QuotationRepository:
    return build_repository(get_settings())


@lru_cache
def get_upload_store() -> UploadStore:
    settings = get_settings()
    return UploadStore(
        root=settings.upload_dir,
        max_bytes=settings.max_upload_bytes,
        allowed_extensions=settings.allowed_image_extensions,
    )


@lru_cache
def get_notifier() -> EmailNotifier:
    settings = get_settings()
    return EmailNotifier(
        host=settings.email_host,
        port=settings.email_port,
        username=settings.email_user,
        password=settings.email_password,
        recipient=settings.notification_recipient,
        sender_name=settings.email_from_name,
        timeout=settings.email_timeout_seconds,
    )


@lru_cache
def get_authenticator() -> AdminAuthenticator:
    settings = get_settings()
    return AdminAuthenticator(settings.admin_email, settings.admin_password_hash)


@lru_cache
def get_token_service() -> TokenService:
    settings = get_settings()
    return TokenService(settings.jwt_secret, ttl=timedelta(days=settings.token_ttl_days))


def get_intake_pipeline(
    repository: QuotationRepository = Depends(get_repository),
    uploads: UploadStore = Depends(get_upload_store),
) -> IntakePipeline:
    return IntakePipeline(repository=repository, uploads=uploads)


_bearer = HTTPBearer(auto_error=False)


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    tokens: TokenService = Depends(get_token_service),
) -> AdminIdentity:
    """Authorization: Bearer <token>. Saknas eller ogiltigt -> 401."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Acesso negado. Token não fornecido.")
    return tokens.verify(credentials.credentials)


def clear_caches() -> None:
    for provider in (get_repository, get_upload_store, get_notifier, get_authenticator, get_token_service):
        provider.cache_clear()
    get_settings.cache_clear()
