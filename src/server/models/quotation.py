# src/server/models/quotation.py
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class QuotationRow(SQLModel, table=True):
    __tablename__ = "quotation"

    id: str = Field(primary_key=True, max_length=32)   # uuid4().hex

    company_name: str
    contact_person: str
    email: str
    supplier_model: str

    power: float
    min_temp: Optional[float] = None
    max_temp: Optional[float] = None
    qty_baskets: Optional[int] = None
    basket_volume: Optional[float] = None
    removable_basket: bool = False
    view_window: bool = False

    fob_price: float
    fob_city: Optional[str] = None
    payment_terms: str
    delivery_time: int
    moq: int

    carton_size: Optional[str] = None
    qty_per_carton: Optional[int] = None
    unit_cbm: Optional[float] = None
    qty_40hc: Optional[int] = None

    image_filename: Optional[str] = None
    image_url: Optional[str] = None

    created_at: datetime = Field(index=True)
    status: str = "received"
