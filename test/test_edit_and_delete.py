import pytest
from conftest import make_service

from bkm.domain.errors import ConsistencyError, InsufficientStockError, NotFoundError, ValidationError
from bkm.domain.events import CashEvent, CreateProductEvent, ManualEvent, PartnerEvent, PurchaseEvent, SaleEvent
from bkm.domain.ledger import Ledger
from bkm.domain.models import InventoryItem, Partner


def _lotion_service(cash: float = 0.0):
    lotion = InventoryItem("c1", "Lotion", "created", quantity=5, unit_cost=2.0, total_value=10.0, selling_price=5.0)
    return make_service(ledger=Ledger(cash=cash, inventory=[lotion]))


def test_deleting_a_sale_restores_stock_and_value():
    service = _lotion_service()
    sale = service.record(SaleEvent("Lotion", 2)).entry

    service.delete_transaction(sale.id)

    item = service.ledger.require_item("Lotion")
    assert (item.quantity, item.total_value) == (5.0, 10.0)
    assert service.ledger.cash == 0.0
    assert service.ledger.total_sales == 0.0
    assert service.ledger.transactions == []


def test_deleting_a_purchase_reverses_value_but_not_quantity():
    bottle = InventoryItem("b1", "Bottle", "bottles", quantity=5, unit_cost=1.0, total_value=5.0)
    service = make_service(ledger=Ledger(cash=100, inventory=[bottle]))
    purchase = service.record(PurchaseEvent("Bottle", "bottles", unit_cost=1, quantity=10)).entry
    assert bottle.quantity == 15.0

    service.delete_transaction(purchase.id)

    # value and unit cost go back, the purchased units stay on hand
    assert bottle.quantity == 15.0
    assert bottle.total_value == 5.0
    assert bottle.unit_cost == 0.33
    assert service.ledger.cash == 100.0


def test_edit_expense_amount_applies_the_difference():
    service = make_service(ledger=Ledger(cash=100))
    expense = service.record(CashEvent("expense", 30, description="Rent")).entry

    edited = service.edit_transaction(expense.id, amount="50", note="corrected").entry

    assert service.ledger.cash == 50.0
    assert edited.debit == "Expenses $50.00"
    assert edited.note == "corrected"
    assert service.ledger.transactions == [edited]


def test_edit_sale_payment_method_to_credit():
    service = _lotion_service()
    sale = service.record(SaleEvent("Lotion", 2)).entry

    edited = service.edit_transaction(sale.id, payment_method="credit", customer_name="Ana").entry

    assert service.ledger.cash == 0.0
    assert service.ledger.total_sales == 10.0
    assert edited.debit_account == "Accounts Receivable - Ana"
    assert service.ledger.require_item("Lotion").quantity == 3.0


def test_edit_sale_quantity_moves_stock():
    service = _lotion_service()
    sale = service.record(SaleEvent("Lotion", 2)).entry

    service.edit_transaction(sale.id, quantity=4)

    assert service.ledger.require_item("Lotion").quantity == 1.0


def test_failed_edit_leaves_ledger_untouched():
    service = _lotion_service()
    sale = service.record(SaleEvent("Lotion", 2)).entry
    before = service.ledger.snapshot()

    with pytest.raises(InsufficientStockError):
        service.edit_transaction(sale.id, quantity=50)

    assert service.ledger.snapshot() == before


def test_create_entries_cannot_be_edited():
    bottle = InventoryItem("b1", "Bottle", "bottles", quantity=10, unit_cost=1.0, total_value=10.0)
    service = make_service(ledger=Ledger(inventory=[bottle]))
    created = service.record(CreateProductEvent("Lotion", 5, bottles_used=10)).entry

    with pytest.raises(ConsistencyError, match="cannot be edited"):
        service.edit_transaction(created.id, amount=5)


def test_only_known_fields_are_editable():
    service = make_service(ledger=Ledger(cash=100))
    gain = service.record(CashEvent("gain", 10)).entry

    with pytest.raises(ValidationError, match="not editable"):
        service.edit_transaction(gain.id, type="loss")
    with pytest.raises(ValidationError, match="not editable"):
        service.edit_transaction(gain.id, quantity=3)


def test_deleting_a_create_returns_materials():
    bottle = InventoryItem("b1", "Bottle", "bottles", quantity=10, unit_cost=1.0, total_value=10.0)
    service = make_service(ledger=Ledger(inventory=[bottle]))
    created = service.record(CreateProductEvent("Lotion", 5, bottles_used=10)).entry

    service.delete_transaction(created.id)

    assert (bottle.quantity, bottle.total_value) == (10.0, 10.0)
    assert service.ledger.require_item("Lotion", "created").quantity == 0.0


def test_deleting_a_create_after_its_units_sold_is_refused():
    bottle = InventoryItem("b1", "Bottle", "bottles", quantity=10, unit_cost=1.0, total_value=10.0)
    service = make_service(ledger=Ledger(inventory=[bottle]))
    created = service.record(CreateProductEvent("Lotion", 5, bottles_used=10, selling_price=4)).entry
    service.record(SaleEvent("Lotion", 3))
    before = service.ledger.snapshot()

    with pytest.raises(ConsistencyError, match="already sold"):
        service.delete_transaction(created.id)

    assert service.ledger.snapshot() == before


def test_deleting_a_withdrawal_restores_cash_and_capital():
    service = make_service(ledger=Ledger(cash=100, partners=[Partner("Ana", 100.0)]))
    withdrawal = service.record(PartnerEvent("withdrawal", "Ana", 40)).entry

    service.delete_transaction(withdrawal.id)

    assert service.ledger.cash == 100.0
    assert service.ledger.require_partner("Ana").capital == 100.0


def test_deleting_unknown_transaction_is_not_found():
    service = make_service()
    with pytest.raises(NotFoundError):
        service.delete_transaction("nope")


def _bottle_service():
    bottle = InventoryItem("b1", "Bottle", "bottles", quantity=10, unit_cost=2.0, total_value=20.0)
    return make_service(ledger=Ledger(cash=100, inventory=[bottle]))


def test_editing_a_manual_inventory_amount_moves_the_matching_quantity():
    service = _bottle_service()
    entry = service.record(ManualEvent("Inventory - Bottle", "Cash", 10)).entry
    assert entry.quantity == 5.0

    edited = service.edit_transaction(entry.id, amount=20).entry

    item = service.ledger.require_item("Bottle")
    assert edited.quantity == 10.0
    assert service.ledger.cash == 80.0
    assert (item.quantity, item.total_value) == (20.0, 40.0)
    assert service.reconcile().ok


def test_editing_a_manual_inventory_credit_checks_stock():
    service = _bottle_service()
    entry = service.record(ManualEvent("Cash", "Inventory - Bottle", 10)).entry
    before = service.ledger.snapshot()

    with pytest.raises(InsufficientStockError, match="Not enough Bottle"):
        service.edit_transaction(entry.id, amount=100)

    assert service.ledger.snapshot() == before
    assert service.ledger.require_item("Bottle").quantity == 5.0
