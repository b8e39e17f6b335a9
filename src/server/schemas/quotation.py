# src/server/schemas/quotation.py
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class QuotationStatus(str, Enum):
    # Inga övergångar finns ännu; fältet är en krok för framtida arbetsflöde
    RECEIVED = "received"


class ImageReference(BaseModel):
    filename: str
    url: str             # t.ex. "/api/images/1718000000000000000.jpg"


class QuotationForm(BaseModel):
    """
    Ett validerat och normaliserat formulär från leverantören.
    Skapas endast av src.services.intake.parse_submission.
    """
    companyName: str = Field(min_length=1)
    contactPerson: str = Field(min_length=1)
    email: str = Field(min_length=1)
    supplierModel: str = Field(min_length=1)

    power: float
    minTemp: Optional[float] = None
    maxTemp: Optional[float] = None
    qtyBaskets: Optional[int] = None
    basketVolume: Optional[float] = None
    removableBasket: bool = False
    viewWindow: bool = False

    fobPrice: float
    fobCity: Optional[str] = None
    paymentTerms: str = Field(min_length=1)
    deliveryTime: int          # dagar
    moq: int

    cartonSize: Optional[str] = None
    qtyPerCarton: Optional[int] = None
    unitCbm: Optional[float] = None
    qty40hc: Optional[int] = None


class QuotationRecord(QuotationForm):
    """Det som faktiskt sparas i dokumentlagret."""
    imageReference: Optional[ImageReference] = None
    createdAt: datetime
    status: QuotationStatus = QuotationStatus.RECEIVED


class Quotation(QuotationRecord):
    """En sparad cotação, med id tilldelat av repositoryt."""
    id: str


class LoginIn(BaseModel):
    # Saknade, null eller icke-strängar behandlas som fel inloggning (401), inte 400
    email: str = ""
    password: str = ""

    @field_validator("email", "password", mode="before")
    @classmethod
    def strings_only(cls, value):
        return value if isinstance(value, str) else ""


class LoginOut(BaseModel):
    token: str
    message: str


class MessageOut(BaseModel):
    message: str


class ValidationErrorOut(MessageOut):
    fields: List[str] = []


class SubmissionOut(BaseModel):
    message: str
    id: str
