import logging

from fastapi import APIRouter, Depends

from src.core.errors import Unauthorized
from src.server.deps import get_authenticator, get_token_service
from src.server.schemas.quotation import LoginIn, LoginOut
from src.services.credentials import AdminAuthenticator
from src.services.tokens import TokenService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])

INVALID_CREDENTIALS = "Credenciais inválidas."


@router.post("/login", response_model=LoginOut, summary="Login do administrador")
def login(
    payload: LoginIn,
    authenticator: AdminAuthenticator = Depends(get_authenticator),
    tokens: TokenService = Depends(get_token_service),
):
    # Samma svar oavsett om e-post eller lösenord var fel
    if not authenticator.verify(payload.email.strip(), payload.password):
        logger.warning("Misslyckad inloggning")
        raise Unauthorized(INVALID_CREDENTIALS)

    token = tokens.issue(authenticator.email)
    return LoginOut(token=token, message="Login bem-sucedido.")
