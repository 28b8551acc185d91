import pytest

from backoffice.errors import NotFoundError
from backoffice.stock.pool import StockPool
from backoffice.stock.transactions import service as transaction_service
from backoffice.stock.transactions.models import StockTransaction, StockTransactionType
from backoffice.stock.transactions.schemas import StockTransactionCreate


def test_warehouse_adjust_changes_product_stock_only(db, admin, products):
    pool = StockPool(db, admin.id)

    pool.adjust(products["P"].id, -3)
    pool.adjust(products["P"].id, 1)
    db.commit()

    assert products["P"].stock == 18
    assert db.query(StockTransaction).count() == 0


def test_vehicle_adjust_appends_ledger_entries(db, admin, products):
    pool = StockPool(db, admin.id)

    pool.adjust(products["P"].id, 3, vehicle_id="V1", notes="Loaded")
    pool.adjust(products["P"].id, -2, vehicle_id="V1")
    db.commit()

    entries = db.query(StockTransaction).all()
    assert sorted((e.type.value, e.quantity) for e in entries) == [
        ("LOAD_TO_VEHICLE", 3),
        ("UNLOAD_FROM_VEHICLE", 2),
    ]
    assert all(e.vehicle_id == "V1" and e.user_id == admin.id for e in entries)

    # Warehouse is untouched by vehicle movements
    assert products["P"].stock == 20
    assert transaction_service.get_vehicle_quantity(db, "V1", products["P"].id) == 1


def test_zero_delta_is_a_no_op(db, admin, products):
    StockPool(db, admin.id).adjust(products["P"].id, 0, vehicle_id="V1")
    db.commit()

    assert products["P"].stock == 20
    assert db.query(StockTransaction).count() == 0


def test_unknown_product_is_rejected(db, admin):
    with pytest.raises(NotFoundError):
        StockPool(db, admin.id).adjust("missing", 1)


def test_vehicle_stock_counts_samples_and_ignores_other_types(db, admin, products):
    p = products["P"]
    for entry_type, quantity in [
        (StockTransactionType.LOAD_TO_VEHICLE, 10),
        (StockTransactionType.ISSUE_SAMPLE, 2),
        (StockTransactionType.UNLOAD_FROM_VEHICLE, 3),
        (StockTransactionType.REMOVE_STOCK_WASTAGE, 4),
    ]:
        transaction_service.create_transaction(
            db,
            StockTransactionCreate(
                product_id=p.id, type=entry_type, quantity=quantity, vehicle_id="V1", user_id="admin"
            ),
            default_account="admin",
        )

    stock = transaction_service.get_vehicle_stock(db, "V1")

    assert stock == [{"product_id": p.id, "product_name": "Product P", "quantity": 5}]
    assert transaction_service.get_vehicle_stock(db, "V2") == []


def test_manual_entry_with_unknown_user_uses_default_account(db, admin, products):
    entry = transaction_service.create_transaction(
        db,
        StockTransactionCreate(
            product_id=products["Q"].id,
            type=StockTransactionType.ADD_STOCK_INVENTORY,
            quantity=4,
            user_id="ghost",
        ),
        default_account="admin",
    )

    assert entry.user_id == admin.id
    assert entry.previous_stock == 5 and entry.new_stock == 5
    assert products["Q"].stock == 5


def test_list_transactions_filters_by_vehicle(db, admin, products):
    pool = StockPool(db, admin.id)
    pool.adjust(products["P"].id, 2, vehicle_id="V1")
    pool.adjust(products["P"].id, 2, vehicle_id="V2")
    db.commit()

    entries = transaction_service.list_transactions(db, vehicle_id="V2")

    assert len(entries) == 1
    assert entries[0].vehicle_id == "V2"
