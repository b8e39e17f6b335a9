# tests/conftest.py
import os, sys
# lägg till projektroten (mappen som innehåller "src") först i sys.path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
from fastapi.testclient import TestClient

from src.server.db.session import build_engine, init_db
from src.server.deps import (
    clear_caches,
    get_authenticator,
    get_notifier,
    get_repository,
    get_token_service,
    get_upload_store,
)
from src.server.settings.config import DEFAULT_IMAGE_EXTENSIONS
from src.services.credentials import AdminAuthenticator, PasswordHasher
from src.services.notifications import EmailNotifier
from src.services.quotation_repository import SqlQuotationRepository
from src.services.tokens import TokenService
from src.services.uploads import UploadStore

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "teste123"
JWT_SECRET = "test-secret-0123456789-0123456789"

# Få iterationer så att testerna går snabbt
FAST_HASHER = PasswordHasher(iterations=1_000)

VALID_FORM = {
    "companyName": "Acme",
    "contactPerson": "Jo",
    "email": "jo@acme.com",
    "supplierModel": "X1",
    "power": "100",
    "fobPrice": "12.5",
    "paymentTerms": "T/T",
    "deliveryTime": "30",
    "moq": "500",
}


class RecordingNotifier(EmailNotifier):
    """EmailNotifier som sparar meddelandena i stället för att prata SMTP."""

    def __init__(self, fail: bool = False):
        super().__init__(host="smtp.test", recipient=ADMIN_EMAIL)
        self.fail = fail
        self.sent = []

    def send(self, msg):
        if self.fail:
            raise ConnectionRefusedError("smtp nere")
        self.sent.append(msg)


@pytest.fixture(autouse=True)
def _env(monkeypatch, tmp_path):
    monkeypatch.setenv("JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("ADMIN_PASSWORD_HASH", FAST_HASHER.hash(ADMIN_PASSWORD))
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "env-uploads"))
    monkeypatch.delenv("EMAIL_HOST", raising=False)
    clear_caches()
    yield
    clear_caches()


@pytest.fixture()
def repository(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    return SqlQuotationRepository(engine)


@pytest.fixture()
def uploads(tmp_path):
    return UploadStore(
        root=tmp_path / "uploads",
        max_bytes=1024 * 1024,
        allowed_extensions=DEFAULT_IMAGE_EXTENSIONS,
    )


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def token_service():
    return TokenService(JWT_SECRET)


@pytest.fixture()
def app(repository, uploads, notifier, token_service):
    from src.server.main import app as fastapi_app

    fastapi_app.dependency_overrides[get_repository] = lambda: repository
    fastapi_app.dependency_overrides[get_upload_store] = lambda: uploads
    fastapi_app.dependency_overrides[get_notifier] = lambda: notifier
    fastapi_app.dependency_overrides[get_token_service] = lambda: token_service
    fastapi_app.dependency_overrides[get_authenticator] = lambda: AdminAuthenticator(
        ADMIN_EMAIL, FAST_HASHER.hash(ADMIN_PASSWORD), hasher=FAST_HASHER
    )
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    # Utan "with": lifespan (och setup_logging) körs inte i testerna
    return TestClient(app)


@pytest.fixture()
def auth_headers(token_service):
    return {"Authorization": f"Bearer {token_service.issue(ADMIN_EMAIL)}"}
