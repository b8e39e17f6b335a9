import io

import pytest

from src.core.errors import NotFound, ValidationError
from src.services.uploads import UploadStore


def test_save_names_file_by_timestamp_and_extension(uploads):
    stored = uploads.save("Foto Produto.JPG", io.BytesIO(b"\xff\xd8data"))
    assert stored.filename.endswith(".jpg")
    assert stored.filename[: -len(".jpg")].isdigit()
    assert stored.url == f"/api/images/{stored.filename}"
    assert stored.path.read_bytes() == b"\xff\xd8data"


def test_concurrent_names_never_collide(uploads):
    names = {uploads.save("a.png", io.BytesIO(b"x")).filename for _ in range(20)}
    assert len(names) == 20


def test_rejects_unknown_extension_without_writing(uploads):
    with pytest.raises(ValidationError) as exc:
        uploads.save("script.exe", io.BytesIO(b"MZ"))
    assert exc.value.fields == ["productPicture"]
    assert list(uploads.root.iterdir()) == []


def test_too_large_file_is_removed(tmp_path):
    store = UploadStore(tmp_path / "small", max_bytes=10, allowed_extensions=[".png"])
    with pytest.raises(ValidationError):
        store.save("big.png", io.BytesIO(b"x" * 11))
    assert list(store.root.iterdir()) == []


def test_without_extension_falls_back_to_basename(tmp_path):
    store = UploadStore(tmp_path / "any")
    stored = store.save("../../etc/passwd", io.BytesIO(b"x"))
    assert stored.filename.endswith("-passwd")
    assert stored.path.parent == store.root


@pytest.mark.parametrize("name", ["passwd", "bild.", "noext.jpeg~", ""])
def test_without_extension_is_rejected_by_default(uploads, name):
    with pytest.raises(ValidationError) as exc:
        uploads.save(name, io.BytesIO(b"x"))
    assert exc.value.fields == ["productPicture"]
    assert list(uploads.root.iterdir()) == []


def test_resolve_and_delete(uploads):
    stored = uploads.save("a.png", io.BytesIO(b"x"))
    assert uploads.resolve(stored.filename) == stored.path.resolve()
    uploads.delete(stored.filename)
    uploads.delete(stored.filename)  # andra gången är inget fel
    with pytest.raises(NotFound):
        uploads.resolve(stored.filename)


@pytest.mark.parametrize("name", ["", "..", "../secret.png", ".hidden", "a/b.png"])
def test_resolve_blocks_traversal(uploads, name):
    with pytest.raises(NotFound):
        uploads.resolve(name)
