import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from src.core.errors import ValidationError
from src.server.deps import (
    get_intake_pipeline,
    get_notifier,
    get_repository,
    require_admin,
)
from src.server.schemas.quotation import Quotation, SubmissionOut
from src.services.export import XLSX_MEDIA_TYPE, build_workbook, export_filename
from src.services.intake import IncomingImage, IntakePipeline
from src.services.notifications import EmailNotifier
from src.services.quotation_repository import QuotationRepository, sort_newest_first

logger = logging.getLogger(__name__)

IMAGE_FIELD = "productPicture"

# Offentlig: leverantörerna skickar formuläret utan inloggning
router = APIRouter(prefix="/api", tags=["cotacoes"])

# Kräver bearer-token; verifieras innan repositoryt rörs
admin_router = APIRouter(
    prefix="/api",
    tags=["cotacoes"],
    dependencies=[Depends(require_admin)],
)


def _single_image(form) -> Optional[UploadFile]:
    files = [
        item for item in form.getlist(IMAGE_FIELD)
        if isinstance(item, UploadFile) and item.filename
    ]
    if len(files) > 1:
        raise ValidationError("Envie no máximo uma imagem.", fields=[IMAGE_FIELD])
    return files[0] if files else None


# ==============================
# SKICKA IN
# ==============================

@router.post(
    "/cotacao",
    response_model=SubmissionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Enviar cotação (multipart, imagem opcional em productPicture)",
)
async def submit_quotation(
    request: Request,
    background_tasks: BackgroundTasks,
    pipeline: IntakePipeline = Depends(get_intake_pipeline),
    notifier: EmailNotifier = Depends(get_notifier),
):
    async with request.form() as form:
        fields = {
            key: value for key, value in form.items()
            if not isinstance(value, UploadFile)
        }
        upload = _single_image(form)
        image: Optional[IncomingImage] = (upload.filename, upload.file) if upload else None

        # Fil-IO och databas är blockerande
        quotation = await run_in_threadpool(pipeline.submit, fields, image)

    # Körs efter att svaret skickats; ett mejlfel påverkar inte svaret
    background_tasks.add_task(notifier.notify, quotation)

    return SubmissionOut(message="Cotação enviada com sucesso!", id=quotation.id)


# ==============================
# ADMIN: LISTA / HÄMTA / EXPORT
# ==============================

@admin_router.get("/cotacoes", response_model=List[Quotation], summary="Listar cotações")
def list_quotations(repository: QuotationRepository = Depends(get_repository)):
    return sort_newest_first(repository.list_all())


@admin_router.get("/cotacao/{quotation_id}", response_model=Quotation, summary="Obter cotação")
def get_quotation(quotation_id: str, repository: QuotationRepository = Depends(get_repository)):
    return repository.get_by_id(quotation_id)


@admin_router.get("/exportar-excel", summary="Exportar cotações para Excel")
def export_quotations(repository: QuotationRepository = Depends(get_repository)):
    content = build_workbook(repository.list_all())
    filename = export_filename(date.today())
    logger.info("Excel-export skapad: %s (%d bytes)", filename, len(content))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
