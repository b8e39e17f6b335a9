# fil: src/services/uploads.py

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Optional

from src.core.errors import DependencyFailure, NotFound, ValidationError

logger = logging.getLogger(__name__)

IMAGE_ROUTE = "/api/images"
CHUNK_SIZE = 64 * 1024

_SAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredImage:
    filename: str
    path: Path

    @property
    def url(self) -> str:
        return f"{IMAGE_ROUTE}/{self.filename}"


def _sanitize_extension(original_name: str) -> str:
    """
    ".JPG" -> ".jpg". Returnerar "" om filen saknar en rimlig ändelse.
    """
    suffix = Path(original_name or "").suffix.lower()
    if not suffix or not re.fullmatch(r"\.[a-z0-9]{1,10}", suffix):
        return ""
    return suffix


def _sanitize_basename(original_name: str) -> str:
    name = Path(original_name or "").name
    cleaned = _SAFE_CHARS.sub("_", name).strip("._")
    return cleaned[:80] or "upload"


class UploadStore:
    """
    Tillfällig lagring av produktbilder (t.ex. /tmp/uploads).

    Filnamn = nanosekund-tidsstämpel + ändelse, så samtidiga uppladdningar
    inte krockar. Filer skapas exklusivt och skrivs aldrig över.
    """

    def __init__(
        self,
        root: Path,
        max_bytes: int = 10 * 1024 * 1024,
        allowed_extensions: Optional[Iterable[str]] = None,
    ) -> None:
        self.root = Path(root)
        self.max_bytes = max_bytes
        # "jpg" och ".JPG" betyder samma sak i konfigurationen
        self.allowed_extensions = (
            {"." + ext.lower().lstrip(".") for ext in allowed_extensions}
            if allowed_extensions else None
        )
        self.root.mkdir(parents=True, exist_ok=True)

    def _target_name(self, original_name: str, attempt: int) -> str:
        """
        "<tidsstämpel><ändelse>". Filer utan ändelse når hit bara när
        allowed_extensions är None (allt tillåtet); då används det
        sanerade namnet som suffix i stället.
        """
        stamp = str(time.time_ns())
        if attempt:
            stamp = f"{stamp}-{attempt}"
        ext = _sanitize_extension(original_name)
        if ext:
            return f"{stamp}{ext}"
        return f"{stamp}-{_sanitize_basename(original_name)}"

    def _open_exclusive(self, original_name: str):
        for attempt in range(10):
            path = self.root / self._target_name(original_name, attempt)
            try:
                return path, path.open("xb")
            except FileExistsError:
                continue
        raise DependencyFailure("Não foi possível gerar um nome único para a imagem.")

    def save(self, original_name: str, stream: BinaryIO) -> StoredImage:
        ext = _sanitize_extension(original_name)
        if self.allowed_extensions is not None and ext not in self.allowed_extensions:
            raise ValidationError(
                "Formato de imagem não suportado.", fields=["productPicture"]
            )

        try:
            path, fh = self._open_exclusive(original_name)
        except OSError as exc:
            logger.exception("Kunde inte skapa fil i %s", self.root)
            raise DependencyFailure("Erro ao salvar a imagem.") from exc

        written = 0
        try:
            with fh:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise ValidationError(
                            "A imagem excede o tamanho máximo permitido.",
                            fields=["productPicture"],
                        )
                    fh.write(chunk)
        except ValidationError:
            self._unlink(path)
            raise
        except OSError as exc:
            self._unlink(path)
            logger.exception("Skrivning av %s misslyckades", path.name)
            raise DependencyFailure("Erro ao salvar a imagem.") from exc

        logger.info("Bild sparad: %s (%d bytes)", path.name, written, extra={"stored_file": path.name})
        return StoredImage(filename=path.name, path=path)

    def delete(self, filename: str) -> None:
        """Tar bort en sparad bild. Saknad fil är inget fel."""
        self._unlink(self.root / Path(filename).name)

    def resolve(self, filename: str) -> Path:
        """
        Översätter ett publikt filnamn till en fil under root.
        Allt som försöker gå utanför katalogen behandlas som saknat.
        """
        if not filename or Path(filename).name != filename or filename.startswith("."):
            raise NotFound("Imagem não encontrada.")
        path = (self.root / filename).resolve()
        if path.parent != self.root.resolve() or not path.is_file():
            raise NotFound("Imagem não encontrada.")
        return path

    @staticmethod
    def _unlink(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Kunde inte ta bort %s", path, exc_info=True)
