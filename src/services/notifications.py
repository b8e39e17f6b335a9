# fil: src/services/notifications.py

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from html import escape
from typing import Optional

from src.server.schemas.quotation import Quotation

logger = logging.getLogger(__name__)


def _fmt_price(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"US$ {value:,.2f}"


def compose_summary(
    quotation: Quotation,
    *,
    sender: str,
    recipient: str,
    sender_name: str = "Painel Sou Energy",
) -> EmailMessage:
    """
    Bygger notifieringsmejlet: företag, kontakt, modell, pris, ledtid och MOQ.
    Både text- och HTML-del; alla användarvärden escapas i HTML-delen.
    """
    q = quotation
    rows = [
        ("Empresa", q.companyName),
        ("Contato", f"{q.contactPerson} <{q.email}>"),
        ("Modelo", q.supplierModel),
        ("Preço FOB", _fmt_price(q.fobPrice)),
        ("Prazo de entrega", f"{q.deliveryTime} dias"),
        ("MOQ", str(q.moq)),
    ]

    msg = EmailMessage()
    msg["Subject"] = f"Nova cotação de {q.companyName} para {q.supplierModel}"
    msg["From"] = formataddr((sender_name, sender))
    msg["To"] = recipient

    text = "\n".join(f"{label}: {value}" for label, value in rows)
    msg.set_content(
        "Nova cotação recebida\n\n"
        f"{text}\n\n"
        f"ID: {q.id}\n"
        "Acesse o painel administrativo para visualizar todos os detalhes.\n"
    )

    html_rows = "".join(
        f"<p><b>{escape(label)}:</b> {escape(str(value))}</p>" for label, value in rows
    )
    msg.add_alternative(
        "<h1>Nova Cotação Recebida</h1>"
        f"{html_rows}"
        "<hr><p>Acesse o painel administrativo para visualizar todos os detalhes.</p>",
        subtype="html",
    )
    return msg


class EmailNotifier:
    """
    Best effort: notify() kastar aldrig. Misslyckade mejl loggas och
    försvinner (ingen kö, inga omförsök).

    Körs som BackgroundTask, dvs efter att HTTP-svaret skickats, och
    socket-timeouten begränsar hur länge ett hängande SMTP-anrop lever.
    """

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        recipient: str = "",
        sender_name: str = "Painel Sou Energy",
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.recipient = recipient
        self.sender_name = sender_name
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.recipient)

    def _connect(self) -> smtplib.SMTP:
        # 465 = implicit TLS, annars STARTTLS om servern stödjer det
        if self.port == 465:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        server.ehlo()
        if server.has_extn("starttls"):
            server.starttls()
            server.ehlo()
        return server

    def send(self, msg: EmailMessage) -> None:
        with self._connect() as server:
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)

    def notify(self, quotation: Quotation) -> bool:
        if not self.enabled:
            logger.info("Mail ej konfigurerat, hoppar över notifiering för %s", quotation.id)
            return False

        try:
            msg = compose_summary(
                quotation,
                sender=self.username or self.recipient,
                recipient=self.recipient,
                sender_name=self.sender_name,
            )
            self.send(msg)
        except Exception:
            logger.exception(
                "Notifiering misslyckades för cotação från %s",
                quotation.companyName,
                extra={"quotation_id": quotation.id, "company": quotation.companyName},
            )
            return False

        logger.info(
            "Notifiering skickad för cotação från %s",
            quotation.companyName,
            extra={"quotation_id": quotation.id, "company": quotation.companyName},
        )
        return True
