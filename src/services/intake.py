# fil: src/services/intake.py
"""
Intagsflödet för en ny cotação:

  1) validera + normalisera formuläret   (parse_submission)
  2) spara bilden, om någon              (UploadStore.save)
  3) spara posten                        (QuotationRepository.append)

Notifiering och svar sköts av HTTP-lagret (src/server/api/quotations.py),
så att mejlet skickas först efter att svaret gått iväg.
Misslyckas något efter steg 2 tas bilden bort igen.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, BinaryIO, Callable, Dict, List, Mapping, Optional, Tuple

from src.core.errors import ValidationError
from src.core.parsing import clean_text, coerce_bool, parse_float, parse_int
from src.server.schemas.quotation import (
    ImageReference,
    Quotation,
    QuotationForm,
    QuotationRecord,
    QuotationStatus,
)
from src.services.quotation_repository import QuotationRepository
from src.services.uploads import StoredImage, UploadStore

logger = logging.getLogger(__name__)

REQUIRED_TEXT_FIELDS = ("companyName", "contactPerson", "email", "supplierModel", "paymentTerms")
OPTIONAL_TEXT_FIELDS = ("fobCity", "cartonSize")

REQUIRED_FLOAT_FIELDS = ("power", "fobPrice")
OPTIONAL_FLOAT_FIELDS = ("minTemp", "maxTemp", "basketVolume", "unitCbm")

REQUIRED_INT_FIELDS = ("deliveryTime", "moq")
OPTIONAL_INT_FIELDS = ("qtyBaskets", "qtyPerCarton", "qty40hc")

BOOL_FIELDS = ("removableBasket", "viewWindow")

# Samma ordning som formuläret, används i felsvaret
REQUIRED_FIELDS = (
    "companyName", "contactPerson", "email", "supplierModel",
    "power", "fobPrice", "paymentTerms", "deliveryTime", "moq",
)

MISSING_MESSAGE = "Todos os campos obrigatórios do formulário devem ser preenchidos."
INVALID_MESSAGE = "Campos numéricos inválidos."

# (originalfilnamn, ström)
IncomingImage = Tuple[str, BinaryIO]


def parse_submission(form: Mapping[str, Any]) -> QuotationForm:
    """
    Gör om råa formulärvärden till en QuotationForm.

    - Obligatoriska fält som saknas/är tomma efter trim -> ValidationError
    - Obligatoriska tal som inte går att tolka -> ValidationError
    - Valfria tal som inte går att tolka -> None
    - Booleska fält: "true"/True -> True, allt annat False
    """
    missing: List[str] = []
    invalid: List[str] = []
    values: Dict[str, Any] = {}

    for name in REQUIRED_TEXT_FIELDS:
        text = clean_text(form.get(name))
        if text is None:
            missing.append(name)
        values[name] = text

    for name in OPTIONAL_TEXT_FIELDS:
        values[name] = clean_text(form.get(name))

    for names, parser, required in (
        (REQUIRED_FLOAT_FIELDS, parse_float, True),
        (OPTIONAL_FLOAT_FIELDS, parse_float, False),
        (REQUIRED_INT_FIELDS, parse_int, True),
        (OPTIONAL_INT_FIELDS, parse_int, False),
    ):
        for name in names:
            raw = form.get(name)
            number = parser(raw)
            if required and number is None:
                if clean_text(raw) is None:
                    missing.append(name)
                else:
                    invalid.append(name)
            values[name] = number

    for name in BOOL_FIELDS:
        values[name] = coerce_bool(form.get(name))

    if missing or invalid:
        fields = [name for name in REQUIRED_FIELDS if name in missing or name in invalid]
        raise ValidationError(MISSING_MESSAGE if missing else INVALID_MESSAGE, fields=fields)

    return QuotationForm(**values)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IntakePipeline:

    def __init__(
        self,
        repository: QuotationRepository,
        uploads: UploadStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.repository = repository
        self.uploads = uploads
        self.clock = clock

    def submit(self, form: Mapping[str, Any], image: Optional[IncomingImage] = None) -> Quotation:
        """
        Validerar, sparar eventuell bild och sparar posten.
        Returnerar den sparade cotação:n med id.
        """
        parsed = parse_submission(form)

        stored: Optional[StoredImage] = None
        if image is not None:
            filename, stream = image
            stored = self.uploads.save(filename, stream)

        try:
            record = QuotationRecord(
                **parsed.model_dump(),
                imageReference=(
                    ImageReference(filename=stored.filename, url=stored.url) if stored else None
                ),
                createdAt=self.clock(),
                status=QuotationStatus.RECEIVED,
            )
            quotation_id = self.repository.append(record)
        except Exception:
            # Ingen cotação pekar på bilden -> ta bort den
            if stored is not None:
                self.uploads.delete(stored.filename)
            raise

        logger.info(
            "Cotação %s mottagen från %s",
            quotation_id,
            record.companyName,
            extra={"quotation_id": quotation_id, "company": record.companyName},
        )
        return Quotation(id=quotation_id, **record.model_dump())
