from datetime import date

from backoffice.returns.document_ids import generate_return_id
from backoffice.returns.models import ReturnTransaction
from backoffice.sales.service import generate_sale_id


def _store_return(db, return_id):
    db.add(ReturnTransaction(id=return_id, original_sale_id="sale-0314-1"))
    db.commit()


def test_first_return_id_of_the_day(db):
    assert generate_return_id(db, today=date(2025, 3, 14)) == "RET-250314-0001"


def test_return_id_follows_greatest_of_the_day(db):
    _store_return(db, "RET-250314-0001")
    _store_return(db, "RET-250314-0007")

    assert generate_return_id(db, today=date(2025, 3, 14)) == "RET-250314-0008"


def test_return_id_sequence_resets_on_new_day(db):
    _store_return(db, "RET-250313-0042")

    assert generate_return_id(db, today=date(2025, 3, 14)) == "RET-250314-0001"
    assert generate_return_id(db, today=date(2025, 3, 13)) == "RET-250313-0043"


def test_sale_ids_count_per_day(db):
    assert generate_sale_id(db, today=date(2025, 3, 14)) == "sale-0314-1"
    assert generate_sale_id(db, today=date(2025, 3, 14)) == "sale-0314-2"
    assert generate_sale_id(db, today=date(2025, 3, 15)) == "sale-0315-1"
