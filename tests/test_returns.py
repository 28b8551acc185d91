import pytest

from backoffice.config import business_today
from backoffice.errors import InvariantViolationError, LedgerValidationError, NotFoundError
from backoffice.payments.models import Payment
from backoffice.returns import service as returns_service
from backoffice.returns.document_ids import return_id_prefix
from backoffice.returns.models import ReturnTransaction
from backoffice.returns.schemas import ReturnCreate
from backoffice.sales import service as sales_service
from backoffice.stock.pool import StockPool
from backoffice.stock.transactions import service as transaction_service
from backoffice.stock.transactions.models import StockTransaction, StockTransactionType


@pytest.fixture
def process(db):
    def _process(sale_id, staff_id="admin", **fields):
        data = ReturnCreate(sale_id=sale_id, staff_id=staff_id, **fields)
        return returns_service.process_return(db, data, default_account="admin")

    return _process


def test_resellable_return_goes_back_to_the_warehouse(db, new_sale, sale_line, products, process):
    sale = new_sale(total=500.0, paid=500.0)
    assert products["P"].stock == 10

    doc = process(sale.id, returned_items=[sale_line(quantity=4, is_resellable=True)])

    assert doc.id == f"{return_id_prefix(business_today())}0001"
    assert doc.notes == f"Return/Exchange for Sale {sale.id}"
    assert [(i.quantity, i.is_resellable) for i in doc.returned_items] == [(4, True)]
    assert products["P"].stock == 14
    assert sales_service.get_sale(db, sale.id).items[0].returned_quantity == 4


def test_cannot_return_more_than_was_sold(db, new_sale, sale_line, products, process):
    sale = new_sale(total=500.0, paid=500.0)
    process(sale.id, returned_items=[sale_line(quantity=4, is_resellable=True)])

    with pytest.raises(InvariantViolationError, match="Already returned: 4, Max: 10"):
        process(sale.id, returned_items=[sale_line(quantity=7, is_resellable=True)])

    db.expire_all()
    assert products["P"].stock == 14
    assert db.query(ReturnTransaction).count() == 1

    process(sale.id, returned_items=[sale_line(quantity=6, is_resellable=True)])
    assert products["P"].stock == 20

    with pytest.raises(InvariantViolationError):
        process(sale.id, returned_items=[sale_line(quantity=1)])


def test_lines_in_one_request_share_the_cap(db, new_sale, sale_line, products, process):
    sale = new_sale(total=500.0, paid=500.0)

    with pytest.raises(InvariantViolationError):
        process(sale.id, returned_items=[
            sale_line(quantity=6, is_resellable=True),
            sale_line(quantity=6, is_resellable=True),
        ])

    db.expire_all()
    assert products["P"].stock == 10
    assert db.query(ReturnTransaction).count() == 0


def test_non_resellable_return_is_written_off(db, new_sale, sale_line, products, process):
    sale = new_sale(total=500.0, paid=500.0)

    doc = process(sale.id, returned_items=[sale_line(quantity=3)])

    assert doc.returned_items[0].is_resellable is False
    assert products["P"].stock == 10
    assert sales_service.get_sale(db, sale.id).items[0].returned_quantity == 3


def test_return_must_match_product_and_sale_type(new_sale, sale_line, process):
    sale = new_sale(total=500.0, paid=500.0)

    with pytest.raises(NotFoundError, match="Item Product Q not found in original sale."):
        process(sale.id, returned_items=[sale_line("Q", quantity=1)])

    with pytest.raises(NotFoundError):
        process(sale.id, returned_items=[sale_line(quantity=1, sale_type="wholesale")])


def test_settlement_over_outstanding_changes_nothing(db, new_sale, sale_line, products, process):
    sale = new_sale(total=500.0, paid=300.0, paid_amount_cash=300.0)

    with pytest.raises(InvariantViolationError, match="Cannot settle 250.00. Outstanding balance is only 200.00."):
        process(
            sale.id,
            settle_outstanding_amount=250.0,
            returned_items=[sale_line(quantity=1, is_resellable=True)],
        )

    db.expire_all()
    sale = sales_service.get_sale(db, sale.id)
    assert sale.outstanding_balance == 200.0
    assert sale.total_amount_paid == 300.0
    assert products["P"].stock == 10
    assert db.query(Payment).count() == 0
    assert db.query(ReturnTransaction).count() == 0


def test_settlement_adds_return_credit_payment(db, new_sale, sale_line, process):
    sale = new_sale(total=500.0, paid=300.0, paid_amount_cash=300.0)

    doc = process(
        sale.id,
        settle_outstanding_amount=150.0,
        returned_items=[sale_line(quantity=3)],
    )

    sale = sales_service.get_sale(db, sale.id)
    assert sale.outstanding_balance == 50.0
    assert sale.total_amount_paid == 450.0
    assert sale.total_amount_paid + sale.outstanding_balance == sale.total_amount

    credit = db.query(Payment).one()
    assert credit.method == "ReturnCredit"
    assert credit.amount == 150.0
    assert credit.notes == f"Credit from Return ID: {doc.id}"
    assert doc.settle_outstanding_amount == 150.0


def test_vehicle_return_and_exchange_stay_on_the_vehicle(db, admin, new_sale, sale_line, products, process):
    StockPool(db, admin.id).adjust(products["P"].id, 10, vehicle_id="V1", notes="Morning load")
    StockPool(db, admin.id).adjust(products["Q"].id, 5, vehicle_id="V1", notes="Morning load")
    db.commit()

    sale = new_sale(total=500.0, paid=500.0, vehicle_id="V1")
    assert transaction_service.get_vehicle_quantity(db, "V1", products["P"].id) == 0

    process(
        sale.id,
        vehicle_id="V1",
        returned_items=[sale_line(quantity=4, is_resellable=True)],
        exchanged_items=[sale_line("Q", quantity=2, applied_price=80.0)],
    )

    assert transaction_service.get_vehicle_quantity(db, "V1", products["P"].id) == 4
    assert transaction_service.get_vehicle_quantity(db, "V1", products["Q"].id) == 3
    assert products["P"].stock == 20
    assert products["Q"].stock == 5

    load = (
        db.query(StockTransaction)
        .filter(StockTransaction.notes.like("Resellable return to vehicle%"))
        .one()
    )
    assert load.type == StockTransactionType.LOAD_TO_VEHICLE
    assert load.quantity == 4


def test_exchange_takes_goods_from_the_warehouse(new_sale, sale_line, products, process):
    sale = new_sale(total=500.0, paid=500.0)

    doc = process(
        sale.id,
        returned_items=[sale_line(quantity=2, is_resellable=True)],
        exchanged_items=[sale_line("Q", quantity=1, applied_price=80.0)],
        payment={"amount_paid": 0, "payment_summary": "N/A"},
    )

    assert products["P"].stock == 12
    assert products["Q"].stock == 4
    assert [i.product_id for i in doc.exchanged_items] == [products["Q"].id]
    assert doc.exchanged_items[0].is_resellable is None


def test_documents_for_the_day_are_numbered_in_order(db, new_sale, sale_line, process):
    sale = new_sale(total=500.0, paid=500.0)

    first = process(sale.id, returned_items=[sale_line(quantity=1)])
    second = process(sale.id, refund_amount=50.0)

    assert first.id.endswith("-0001")
    assert second.id.endswith("-0002")

    history = returns_service.list_returns(db, sale_id=sale.id)
    assert {doc.id for doc in history} == {first.id, second.id}
    assert returns_service.list_returns(db, sale_id="other") == []
    assert returns_service.get_return(db, first.id).original_sale_id == sale.id


def test_empty_request_is_rejected(new_sale, process):
    sale = new_sale()

    with pytest.raises(LedgerValidationError, match="empty transaction"):
        process(sale.id)


def test_missing_staff_or_sale_is_rejected(new_sale, sale_line, process):
    sale = new_sale()

    with pytest.raises(LedgerValidationError, match="Missing required fields"):
        process(sale.id, staff_id="  ", returned_items=[sale_line(quantity=1)])

    with pytest.raises(LedgerValidationError):
        process("", returned_items=[sale_line(quantity=1)])


def test_unknown_sale_is_not_found(admin, sale_line, process):
    with pytest.raises(NotFoundError):
        process("missing", refund_amount=10.0)


def test_unknown_exchange_product_rolls_back_the_whole_return(db, new_sale, sale_line, products, process):
    sale = new_sale(total=500.0, paid=300.0, paid_amount_cash=300.0)

    with pytest.raises(NotFoundError):
        process(
            sale.id,
            settle_outstanding_amount=100.0,
            returned_items=[sale_line(quantity=2, is_resellable=True)],
            exchanged_items=[sale_line(product_id="missing", quantity=1)],
        )

    db.expire_all()
    sale = sales_service.get_sale(db, sale.id)
    assert sale.outstanding_balance == 200.0
    assert sale.total_amount_paid == 300.0
    assert sale.items[0].returned_quantity == 0
    assert products["P"].stock == 10
    assert db.query(Payment).count() == 0
    assert db.query(ReturnTransaction).count() == 0
