from fastapi import APIRouter

from src.server.schemas.quotation import MessageOut

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health", response_model=MessageOut)
def health():
    return {"message": "ok"}
