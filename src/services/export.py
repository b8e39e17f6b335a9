# fil: src/services/export.py

from __future__ import annotations

import io
from datetime import date
from typing import Any, Iterable, List, NamedTuple

import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from src.core.errors import NotFound
from src.server.schemas.quotation import Quotation
from src.services.quotation_repository import sort_newest_first

SHEET_NAME = "Cotações"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CURRENCY_FORMAT = '"$"#,##0.00'


class ExportColumn(NamedTuple):
    header: str
    key: str
    width: int


# Fast kolumnordning för exporten
EXPORT_COLUMNS: List[ExportColumn] = [
    ExportColumn("ID", "id", 30),
    ExportColumn("Data", "createdAt", 20),
    ExportColumn("Status", "status", 12),
    ExportColumn("Empresa", "companyName", 25),
    ExportColumn("Contato", "contactPerson", 20),
    ExportColumn("Email", "email", 30),
    ExportColumn("Modelo Fornecedor", "supplierModel", 20),
    ExportColumn("Potência (W)", "power", 12),
    ExportColumn("Temp. Mín (°C)", "minTemp", 14),
    ExportColumn("Temp. Máx (°C)", "maxTemp", 14),
    ExportColumn("Qtd. Cestos", "qtyBaskets", 12),
    ExportColumn("Volume Cesto (L)", "basketVolume", 16),
    ExportColumn("Cesto Removível", "removableBasket", 16),
    ExportColumn("Janela de Visualização", "viewWindow", 22),
    ExportColumn("Preço FOB", "fobPrice", 15),
    ExportColumn("Cidade FOB", "fobCity", 15),
    ExportColumn("Condições de Pagamento", "paymentTerms", 22),
    ExportColumn("Prazo de Entrega (dias)", "deliveryTime", 22),
    ExportColumn("MOQ", "moq", 10),
    ExportColumn("Tamanho da Caixa", "cartonSize", 18),
    ExportColumn("Qtd. por Caixa", "qtyPerCarton", 14),
    ExportColumn("CBM Unitário", "unitCbm", 14),
    ExportColumn("Qtd. 40HC", "qty40hc", 12),
    ExportColumn("Imagem", "image", 30),
]

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", start_color="1F4E78", end_color="1F4E78")


def _cell_value(q: Quotation, key: str) -> Any:
    if key == "createdAt":
        # Excel kan inte lagra tidszoner
        return q.createdAt.replace(tzinfo=None)
    if key == "status":
        return q.status.value
    if key == "image":
        return q.imageReference.url if q.imageReference else None
    if key in ("removableBasket", "viewWindow"):
        return "Sim" if getattr(q, key) else "Não"
    return getattr(q, key)


def quotations_to_frame(quotations: Iterable[Quotation]) -> pd.DataFrame:
    rows = [
        {col.header: _cell_value(q, col.key) for col in EXPORT_COLUMNS}
        for q in sort_newest_first(quotations)
    ]
    # object-dtype så att heltal med luckor inte blir flyttal
    return pd.DataFrame(rows, columns=[col.header for col in EXPORT_COLUMNS], dtype=object)


def build_workbook(quotations: Iterable[Quotation]) -> bytes:
    """
    Renderar alla cotações till en .xlsx i minnet.

    Hela tabellen materialiseras; räcker för manuellt inskickade formulär
    (några tusen rader), inte för större volymer.
    Kastar NotFound om det inte finns något att exportera.
    """
    frame = quotations_to_frame(quotations)
    if frame.empty:
        raise NotFound("Nenhuma cotação encontrada para exportar.")

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl", datetime_format="YYYY-MM-DD HH:MM") as writer:
        frame.to_excel(writer, sheet_name=SHEET_NAME, index=False)
        ws = writer.sheets[SHEET_NAME]

        for idx, col in enumerate(EXPORT_COLUMNS, start=1):
            letter = get_column_letter(idx)
            ws.column_dimensions[letter].width = col.width
            header = ws.cell(row=1, column=idx)
            header.font = HEADER_FONT
            header.fill = HEADER_FILL
            header.alignment = Alignment(horizontal="center", vertical="center")
            if col.key == "fobPrice":
                for (cell,) in ws.iter_rows(min_row=2, min_col=idx, max_col=idx):
                    cell.number_format = CURRENCY_FORMAT

        ws.freeze_panes = "A2"

    return buffer.getvalue()


def export_filename(today: date) -> str:
    return f"cotacoes_{today.isoformat()}.xlsx"
