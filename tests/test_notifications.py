from datetime import datetime, timezone

from conftest import ADMIN_EMAIL, VALID_FORM, RecordingNotifier
from src.server.schemas.quotation import Quotation
from src.services.intake import parse_submission
from src.services.notifications import EmailNotifier, compose_summary


def _quotation(**overrides):
    form = parse_submission({**VALID_FORM, **overrides})
    return Quotation(id="abc123", createdAt=datetime.now(timezone.utc), **form.model_dump())


def test_summary_contains_key_fields():
    msg = compose_summary(_quotation(), sender="painel@example.com", recipient=ADMIN_EMAIL)
    assert msg["Subject"] == "Nova cotação de Acme para X1"
    assert msg["To"] == ADMIN_EMAIL
    text = msg.get_body(preferencelist=("plain",)).get_content()
    for part in ("Acme", "Jo", "X1", "US$ 12.50", "30 dias", "MOQ: 500", "abc123"):
        assert part in text


def test_summary_escapes_html():
    msg = compose_summary(
        _quotation(companyName="<script>x</script>"), sender="p@example.com", recipient=ADMIN_EMAIL
    )
    html = msg.get_body(preferencelist=("html",)).get_content()
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_notify_sends_to_admin():
    notifier = RecordingNotifier()
    assert notifier.notify(_quotation()) is True
    assert len(notifier.sent) == 1
    assert notifier.sent[0]["To"] == ADMIN_EMAIL


def test_notify_swallows_transport_errors(caplog):
    notifier = RecordingNotifier(fail=True)
    assert notifier.notify(_quotation()) is False
    assert "Notifiering misslyckades" in caplog.text


def test_disabled_without_host():
    notifier = EmailNotifier(host=None, recipient=ADMIN_EMAIL)
    assert not notifier.enabled
    assert notifier.notify(_quotation()) is False
