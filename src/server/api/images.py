from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from src.server.deps import get_upload_store
from src.services.uploads import UploadStore

# Offentlig, används av admin-panelen för att visa produktbilder
router = APIRouter(prefix="/api", tags=["images"])


@router.get("/images/{filename}", summary="Servir imagem enviada")
def get_image(filename: str, uploads: UploadStore = Depends(get_upload_store)):
    return FileResponse(uploads.resolve(filename))
