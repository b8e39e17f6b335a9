import io
from datetime import date, datetime, timedelta, timezone

import pytest
from openpyxl import load_workbook

from conftest import VALID_FORM
from src.core.errors import NotFound
from src.server.schemas.quotation import ImageReference, Quotation
from src.services.export import EXPORT_COLUMNS, SHEET_NAME, build_workbook, export_filename
from src.services.intake import parse_submission

BASE = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _quotation(qid, minutes, **overrides):
    form = parse_submission({**VALID_FORM, **overrides})
    return Quotation(id=qid, createdAt=BASE + timedelta(minutes=minutes), **form.model_dump())


def _sheet(content):
    return load_workbook(io.BytesIO(content))[SHEET_NAME]


def test_empty_export_is_not_found():
    with pytest.raises(NotFound):
        build_workbook([])


def test_header_row_is_styled_and_complete():
    ws = _sheet(build_workbook([_quotation("a", 0)]))
    headers = [c.value for c in ws[1]]
    assert headers == [col.header for col in EXPORT_COLUMNS]
    assert all(c.font.bold for c in ws[1])
    assert ws.freeze_panes == "A2"


def test_rows_are_newest_first_with_values():
    q_old = _quotation("old", 0, companyName="Antiga")
    q_new = _quotation("new", 10, companyName="Nova", removableBasket="true", qtyBaskets="")
    q_new = q_new.model_copy(update={"imageReference": ImageReference(filename="1.png", url="/api/images/1.png")})
    ws = _sheet(build_workbook([q_old, q_new]))

    col = {c.value: i for i, c in enumerate(ws[1])}
    rows = list(ws.iter_rows(min_row=2, values_only=True))
    assert [r[col["ID"]] for r in rows] == ["new", "old"]
    first = rows[0]
    assert first[col["Empresa"]] == "Nova"
    assert first[col["Preço FOB"]] == 12.5
    assert first[col["MOQ"]] == 500
    assert first[col["Cesto Removível"]] == "Sim"
    assert first[col["Qtd. Cestos"]] in (None, "")
    assert first[col["Imagem"]] == "/api/images/1.png"
    assert first[col["Status"]] == "received"


def test_fob_price_has_currency_format():
    ws = _sheet(build_workbook([_quotation("a", 0)]))
    idx = [c.value for c in ws[1]].index("Preço FOB") + 1
    assert ws.cell(row=2, column=idx).number_format == '"$"#,##0.00'


def test_export_filename():
    assert export_filename(date(2025, 3, 7)) == "cotacoes_2025-03-07.xlsx"
