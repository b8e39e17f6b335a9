from functools import lru_cache
from pathlib import Path
from typing import List, Optional
import os

from pydantic import BaseModel
from dotenv import load_dotenv

from src.core.errors import ConfigError

load_dotenv()

# Måste finnas i miljön, annars startar inte appen
REQUIRED_ENV = ("JWT_SECRET", "ADMIN_EMAIL", "ADMIN_PASSWORD_HASH")

DEFAULT_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".heic")


class Settings(BaseModel):
    app_name: str = "Painel Sou Energy - Cotações"
    environment: str = "dev"
    debug: bool = False

    # Auth
    jwt_secret: str
    admin_email: str
    admin_password_hash: str
    token_ttl_days: int = 7

    # Dokumentlager: SQLAlchemy-URL eller Firebase RTDB (https://...)
    database_url: str = "sqlite:///./cotacoes.db"
    firebase_auth_token: Optional[str] = None

    # Mail (tom host = notifieringar avstängda)
    email_host: Optional[str] = None
    email_port: int = 587
    email_user: Optional[str] = None
    email_password: Optional[str] = None
    email_from_name: str = "Painel Sou Energy"
    notify_email: Optional[str] = None
    email_timeout_seconds: float = 10.0

    # Uppladdningar
    upload_dir: Path = Path("/tmp/uploads")
    max_upload_mb: int = 10
    allowed_image_extensions: List[str] = list(DEFAULT_IMAGE_EXTENSIONS)

    port: int = 3000
    cors_origins: List[str] = ["*"]

    log_level: str = "INFO"
    log_json: bool = False
    log_dir: Optional[Path] = None

    @property
    def uses_firebase(self) -> bool:
        return self.database_url.startswith(("http://", "https://"))

    @property
    def notification_recipient(self) -> str:
        return self.notify_email or self.admin_email

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value if value else default


def _env_flag(name: str, default: bool = False) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    value = _env(name)
    if value is None:
        return list(default)
    return [part.strip() for part in value.split(",") if part.strip()]


def load_settings() -> Settings:
    """
    Läser inställningar från miljön (och .env via load_dotenv).

    Kastar ConfigError om någon av REQUIRED_ENV saknas, så att appen
    hellre vägrar starta än kör med tom JWT-hemlighet.
    """
    missing = [name for name in REQUIRED_ENV if not _env(name)]
    if missing:
        raise ConfigError(f"Variáveis de ambiente obrigatórias ausentes: {', '.join(missing)}")

    try:
        return Settings(
            environment=_env("ENVIRONMENT", "dev"),
            debug=_env_flag("DEBUG"),
            jwt_secret=_env("JWT_SECRET"),
            admin_email=_env("ADMIN_EMAIL"),
            admin_password_hash=_env("ADMIN_PASSWORD_HASH"),
            token_ttl_days=int(_env("TOKEN_TTL_DAYS", "7")),
            database_url=_env("DATABASE_URL", "sqlite:///./cotacoes.db"),
            firebase_auth_token=_env("FIREBASE_AUTH_TOKEN"),
            email_host=_env("EMAIL_HOST"),
            email_port=int(_env("EMAIL_PORT", "587")),
            email_user=_env("EMAIL_USER"),
            email_password=_env("EMAIL_PASSWORD"),
            email_from_name=_env("EMAIL_FROM_NAME", "Painel Sou Energy"),
            notify_email=_env("NOTIFY_EMAIL"),
            email_timeout_seconds=float(_env("EMAIL_TIMEOUT_SECONDS", "10")),
            upload_dir=Path(_env("UPLOAD_DIR", "/tmp/uploads")),
            max_upload_mb=int(_env("MAX_UPLOAD_MB", "10")),
            allowed_image_extensions=_env_list("ALLOWED_IMAGE_EXTENSIONS", list(DEFAULT_IMAGE_EXTENSIONS)),
            port=int(_env("PORT", "3000")),
            cors_origins=_env_list("CORS_ORIGINS", ["*"]),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_json=_env_flag("LOG_JSON"),
            log_dir=Path(_env("LOG_DIR")) if _env("LOG_DIR") else None,
        )
    except ValueError as exc:
        # int()/float() på felaktiga värden, eller pydantic-validering
        raise ConfigError(f"Configuração inválida: {exc}") from exc


@lru_cache
def get_settings() -> Settings:
    return load_settings()
