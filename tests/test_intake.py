import io
from datetime import datetime, timezone

import pytest

from conftest import VALID_FORM
from src.core.errors import DependencyFailure, ValidationError
from src.services.intake import REQUIRED_FIELDS, IntakePipeline, parse_submission

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class FailingRepository:
    def append(self, record):
        raise DependencyFailure("db nere")


def test_parse_valid_form_normalizes_types():
    form = parse_submission({
        **VALID_FORM,
        "companyName": "  Acme  ",
        "minTemp": "-5.5",
        "maxTemp": "",
        "qtyBaskets": "2",
        "basketVolume": "n/a",
        "removableBasket": "true",
        "viewWindow": "false",
        "fobCity": "  ",
        "qty40hc": "1200.0",
    })
    assert form.companyName == "Acme"
    assert form.power == 100.0
    assert form.fobPrice == 12.5
    assert form.deliveryTime == 30 and form.moq == 500
    assert form.minTemp == -5.5
    assert form.maxTemp is None
    assert form.basketVolume is None
    assert form.qtyBaskets == 2
    assert form.qty40hc == 1200
    assert form.removableBasket is True
    assert form.viewWindow is False
    assert form.fobCity is None


@pytest.mark.parametrize("field", REQUIRED_FIELDS)
def test_each_required_field_is_enforced(field):
    data = dict(VALID_FORM)
    del data[field]
    with pytest.raises(ValidationError) as exc:
        parse_submission(data)
    assert exc.value.fields == [field]


def test_blank_required_field_counts_as_missing():
    with pytest.raises(ValidationError) as exc:
        parse_submission({**VALID_FORM, "companyName": "   ", "moq": ""})
    assert exc.value.fields == ["companyName", "moq"]


def test_unparsable_required_number_is_invalid():
    with pytest.raises(ValidationError) as exc:
        parse_submission({**VALID_FORM, "fobPrice": "doze", "deliveryTime": "30.5"})
    assert exc.value.fields == ["fobPrice", "deliveryTime"]
    assert "inválidos" in exc.value.message


def test_submit_persists_record(repository, uploads):
    pipeline = IntakePipeline(repository, uploads, clock=lambda: FIXED_NOW)
    q = pipeline.submit(VALID_FORM)
    assert q.id
    assert q.imageReference is None
    assert q.status.value == "received"
    assert q.createdAt == FIXED_NOW
    assert repository.get_by_id(q.id) == q


def test_submit_with_image(repository, uploads):
    pipeline = IntakePipeline(repository, uploads)
    q = pipeline.submit(VALID_FORM, ("foto.png", io.BytesIO(b"png")))
    assert q.imageReference is not None
    assert (uploads.root / q.imageReference.filename).read_bytes() == b"png"


def test_invalid_form_never_stores_image(repository, uploads):
    pipeline = IntakePipeline(repository, uploads)
    with pytest.raises(ValidationError):
        pipeline.submit({**VALID_FORM, "email": ""}, ("foto.png", io.BytesIO(b"png")))
    assert list(uploads.root.iterdir()) == []
    assert repository.list_all() == []


def test_persist_failure_removes_stored_image(uploads):
    pipeline = IntakePipeline(FailingRepository(), uploads)
    with pytest.raises(DependencyFailure):
        pipeline.submit(VALID_FORM, ("foto.png", io.BytesIO(b"png")))
    assert list(uploads.root.iterdir()) == []
