# fil: src/services/quotation_repository.py

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import requests
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from src.core.errors import DependencyFailure, NotFound
from src.core.parsing import coerce_bool
from src.server.models import QuotationRow
from src.server.schemas.quotation import ImageReference, Quotation, QuotationRecord
from src.services.uploads import IMAGE_ROUTE

logger = logging.getLogger(__name__)

COLLECTION = "cotacoes"

# camelCase (API/dokument) -> snake_case (SQL-kolumn)
FIELD_COLUMNS: Dict[str, str] = {
    "companyName": "company_name",
    "contactPerson": "contact_person",
    "email": "email",
    "supplierModel": "supplier_model",
    "power": "power",
    "minTemp": "min_temp",
    "maxTemp": "max_temp",
    "qtyBaskets": "qty_baskets",
    "basketVolume": "basket_volume",
    "removableBasket": "removable_basket",
    "viewWindow": "view_window",
    "fobPrice": "fob_price",
    "fobCity": "fob_city",
    "paymentTerms": "payment_terms",
    "deliveryTime": "delivery_time",
    "moq": "moq",
    "cartonSize": "carton_size",
    "qtyPerCarton": "qty_per_carton",
    "unitCbm": "unit_cbm",
    "qty40hc": "qty_40hc",
}


def _as_utc(value: datetime) -> datetime:
    # SQLite tappar tidszonen; allt lagras i UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def sort_newest_first(quotations: Iterable[Quotation]) -> List[Quotation]:
    """Visningsordning: createdAt fallande. Lagret garanterar ingen ordning."""
    return sorted(quotations, key=lambda q: _as_utc(q.createdAt), reverse=True)


class QuotationRepository(ABC):
    """
    Tunt lager över dokumentlagret: lägg till, läs alla, läs en.
    Inga uppdateringar, inga borttagningar, en rundresa per operation.
    """

    @abstractmethod
    def append(self, record: QuotationRecord) -> str:
        """Sparar under ett nytt id och returnerar id:t."""

    @abstractmethod
    def list_all(self) -> List[Quotation]:
        """Alla sparade cotações, i lagrets egen ordning."""

    @abstractmethod
    def get_by_id(self, quotation_id: str) -> Quotation:
        """Kastar NotFound om id:t saknas."""


# ==============================
# SQL (sqlmodel)
# ==============================

class SqlQuotationRepository(QuotationRepository):

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @staticmethod
    def _to_row(quotation_id: str, record: QuotationRecord) -> QuotationRow:
        data = record.model_dump(include=set(FIELD_COLUMNS))
        values: Dict[str, Any] = {FIELD_COLUMNS[key]: value for key, value in data.items()}
        image = record.imageReference
        return QuotationRow(
            id=quotation_id,
            image_filename=image.filename if image else None,
            image_url=image.url if image else None,
            created_at=_as_utc(record.createdAt),
            status=record.status.value,
            **values,
        )

    @staticmethod
    def _from_row(row: QuotationRow) -> Quotation:
        data: Dict[str, Any] = {key: getattr(row, column) for key, column in FIELD_COLUMNS.items()}
        image = None
        if row.image_filename:
            image = ImageReference(
                filename=row.image_filename,
                url=row.image_url or f"{IMAGE_ROUTE}/{row.image_filename}",
            )
        return Quotation(
            id=row.id,
            imageReference=image,
            createdAt=_as_utc(row.created_at),
            status=row.status,
            **data,
        )

    def append(self, record: QuotationRecord) -> str:
        quotation_id = uuid.uuid4().hex
        row = self._to_row(quotation_id, record)
        try:
            with Session(self.engine) as session:
                session.add(row)
                session.commit()
        except (SQLAlchemyError, OverflowError) as exc:
            # OverflowError: sqlite3 vägrar heltal utanför 64 bitar
            logger.exception("Kunde inte spara cotação i databasen")
            raise DependencyFailure("Erro interno ao processar a cotação.") from exc
        return quotation_id

    def list_all(self) -> List[Quotation]:
        try:
            with Session(self.engine) as session:
                rows = session.exec(select(QuotationRow)).all()
                return [self._from_row(r) for r in rows]
        except SQLAlchemyError as exc:
            logger.exception("Kunde inte läsa cotações från databasen")
            raise DependencyFailure("Erro ao obter dados.") from exc

    def get_by_id(self, quotation_id: str) -> Quotation:
        try:
            with Session(self.engine) as session:
                row = session.get(QuotationRow, quotation_id)
                if row is None:
                    raise NotFound("Cotação não encontrada.")
                return self._from_row(row)
        except SQLAlchemyError as exc:
            logger.exception("Kunde inte läsa cotação %s", quotation_id)
            raise DependencyFailure("Erro ao obter dados.") from exc


# ==============================
# FIREBASE REALTIME DATABASE (REST)
# ==============================

def _legacy_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Äldre poster (från den första Node-versionen) har portugisiska nycklar
    och booleska fält som strängar. Översätt till dagens form.
    """
    out = dict(doc)
    if "createdAt" not in out and "dataCriacao" in out:
        out["createdAt"] = out.pop("dataCriacao")
    if out.get("status") in (None, "recebida"):
        out["status"] = "received"
    legacy_image = out.pop("imagemFileName", None)
    if legacy_image and not out.get("imageReference"):
        out["imageReference"] = {"filename": legacy_image, "url": f"{IMAGE_ROUTE}/{legacy_image}"}
    for key in ("removableBasket", "viewWindow"):
        out[key] = coerce_bool(out.get(key))
    return out


class FirebaseQuotationRepository(QuotationRepository):
    """
    Firebase Realtime Database via REST-API:t.
      POST /cotacoes.json        -> {"name": "<push-id>"}
      GET  /cotacoes.json        -> {id: dokument, ...} eller null
      GET  /cotacoes/<id>.json   -> dokument eller null
    """

    def __init__(
        self,
        base_url: str,
        auth_token: Optional[str] = None,
        timeout: float = 15.0,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout = timeout
        self.http = http or requests.Session()

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, COLLECTION, *parts]) + ".json"

    def _params(self) -> Dict[str, str]:
        return {"auth": self.auth_token} if self.auth_token else {}

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            res = self.http.request(method, url, params=self._params(), timeout=self.timeout, **kwargs)
            res.raise_for_status()
            return res.json()
        except (requests.exceptions.RequestException, ValueError) as exc:
            # ValueError = svaret var inte JSON
            logger.error("Firebase-anrop misslyckades: %s %s: %s", method, url, exc)
            raise DependencyFailure("Erro ao acessar o banco de dados.") from exc

    @staticmethod
    def _from_document(quotation_id: str, doc: Dict[str, Any]) -> Quotation:
        return Quotation.model_validate({**_legacy_document(doc), "id": quotation_id})

    def append(self, record: QuotationRecord) -> str:
        body = record.model_dump(mode="json")
        data = self._request("POST", self._url(), json=body)
        quotation_id = (data or {}).get("name") if isinstance(data, dict) else None
        if not quotation_id:
            raise DependencyFailure("Erro ao acessar o banco de dados.")
        return str(quotation_id)

    def list_all(self) -> List[Quotation]:
        data = self._request("GET", self._url())
        if not data:
            return []
        out: List[Quotation] = []
        for key, doc in data.items():
            if not isinstance(doc, dict):
                continue
            try:
                out.append(self._from_document(key, doc))
            except PydanticValidationError as exc:
                # En trasig post ska inte fälla hela listan
                logger.warning("Hoppar över ogiltig cotação %s: %s", key, exc.errors()[:3])
        return out

    def get_by_id(self, quotation_id: str) -> Quotation:
        # Firebase-nycklar får inte innehålla dessa tecken
        if not quotation_id or any(c in quotation_id for c in "./#$[]"):
            raise NotFound("Cotação não encontrada.")
        doc = self._request("GET", self._url(quotation_id))
        if not isinstance(doc, dict):
            raise NotFound("Cotação não encontrada.")
        try:
            return self._from_document(quotation_id, doc)
        except PydanticValidationError as exc:
            logger.error("Cotação %s i Firebase är ogiltig: %s", quotation_id, exc)
            raise DependencyFailure("Erro ao obter dados.") from exc
