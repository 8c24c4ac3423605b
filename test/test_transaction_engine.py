import math

import pytest
from conftest import FixedClock, id_sequence

from bkm.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from bkm.domain.events import (
    CashEvent,
    CounterpartyEvent,
    CreateProductEvent,
    ManualEvent,
    PartnerEvent,
    PurchaseEvent,
    SaleEvent,
)
from bkm.domain.ledger import Ledger
from bkm.domain.models import InventoryItem, Partner
from bkm.services.transaction_engine import TransactionEngine


def _engine(ledger: Ledger) -> TransactionEngine:
    return TransactionEngine(ledger, clock=FixedClock(), id_factory=id_sequence())


def _lotion_ledger(**kwargs) -> Ledger:
    lotion = InventoryItem("c1", "Lotion", "created", quantity=5, unit_cost=2.0, total_value=10.0, selling_price=5.0)
    return Ledger(inventory=[lotion], **kwargs)


def test_cash_purchase_creates_item_and_books_labels():
    ledger = Ledger(cash=100)
    applied = _engine(ledger).apply(PurchaseEvent("Bottle", "bottles", unit_cost=1.5, quantity=10))

    item = ledger.require_item("Bottle", "bottles")
    assert (item.quantity, item.unit_cost, item.total_value) == (10.0, 1.5, 15.0)
    assert ledger.cash == 85.0
    assert applied.entry.debit == "Inventory - Bottle $15.00"
    assert applied.entry.credit == "Cash $15.00"
    assert applied.entry.date == "3/5/2024"
    assert applied.delta.cash == -15.0
    assert applied.delta.inventory == {"bottles/Bottle": 10.0}
    assert ledger.transactions == [applied.entry]


def test_credit_purchase_books_payable_and_keeps_cash():
    ledger = Ledger(cash=100)
    applied = _engine(ledger).apply(
        PurchaseEvent("Bottle", "bottles", unit_cost="2", quantity="5", payment_method="credit", creditor_name="Supplier Co")
    )

    assert ledger.cash == 100.0
    assert applied.entry.credit_account == "Accounts Payable - Supplier Co"


def test_credit_purchase_requires_creditor():
    ledger = Ledger(cash=100)
    with pytest.raises(ValidationError, match="Creditor name"):
        _engine(ledger).apply(PurchaseEvent("Bottle", "bottles", unit_cost=2, quantity=5, payment_method="credit"))
    assert ledger.inventory == []


def test_oil_is_tracked_by_grams():
    ledger = Ledger(cash=200)
    _engine(ledger).apply(PurchaseEvent("Lavender", "oil", unit_cost=0.2, grams=500, milliliters=550))

    oil = ledger.require_item("Lavender", "oil")
    assert oil.grams == 500.0
    assert oil.quantity == 0.0
    assert oil.total_value == 100.0
    assert oil.milliliters == 550.0
    assert ledger.cash == 100.0


def test_latest_purchase_price_replaces_unit_cost():
    ledger = Ledger(cash=100)
    engine = _engine(ledger)
    engine.apply(PurchaseEvent("Bottle", "bottles", unit_cost=1, quantity=10))
    engine.apply(PurchaseEvent("Bottle", "bottles", unit_cost=2, quantity=10))

    item = ledger.require_item("Bottle")
    assert (item.quantity, item.unit_cost, item.total_value) == (20.0, 2.0, 40.0)
    assert len(ledger.inventory) == 1


def test_cash_sale_uses_selling_price():
    ledger = _lotion_ledger()
    applied = _engine(ledger).apply(SaleEvent("Lotion", 2))

    item = ledger.require_item("Lotion")
    assert applied.entry.amount == 10.0
    assert applied.entry.unit_cost == 2.0
    assert ledger.cash == 10.0
    assert ledger.total_sales == 10.0
    assert (item.quantity, item.total_value) == (3.0, 6.0)
    assert applied.entry.debit_account == "Cash"
    assert applied.entry.credit_account == "Revenue"


def test_credit_sale_books_receivable():
    ledger = _lotion_ledger()
    applied = _engine(ledger).apply(SaleEvent("Lotion", 1, unit_price=7, payment_method="credit", customer_name="Ana"))

    assert ledger.cash == 0.0
    assert ledger.total_sales == 7.0
    assert applied.entry.debit == "Accounts Receivable - Ana $7.00"


def test_boxed_sale_consumes_box_and_adds_its_cost():
    box = InventoryItem("b1", "Gift Box", "box", quantity=4, unit_cost=0.5, total_value=2.0)
    ledger = _lotion_ledger()
    ledger.upsert_item(box)

    applied = _engine(ledger).apply(SaleEvent("Lotion", 2, unit_price=5, is_boxed=True, box_price="1"))

    assert applied.entry.amount == 11.0
    assert applied.entry.unit_cost == 2.5
    assert applied.entry.box_name == "Gift Box"
    assert (box.quantity, box.total_value) == (2.0, 1.0)
    assert ledger.require_item("Lotion").quantity == 3.0


def test_boxed_sale_without_enough_boxes_leaves_state_untouched():
    ledger = _lotion_ledger(cash=50)
    ledger.upsert_item(InventoryItem("b1", "Gift Box", "box", quantity=1, unit_cost=0.5, total_value=0.5))
    before = ledger.snapshot()

    with pytest.raises(InsufficientStockError, match="Not enough boxes available"):
        _engine(ledger).apply(SaleEvent("Lotion", 2, unit_price=5, is_boxed=True))

    assert ledger.snapshot() == before


def test_sale_of_unknown_product_is_not_found():
    with pytest.raises(NotFoundError, match="Soap"):
        _engine(_lotion_ledger()).apply(SaleEvent("Soap", 1, unit_price=3))


def test_create_consumes_bottles_and_oil():
    ledger = Ledger(
        inventory=[
            InventoryItem("b1", "Bottle", "bottles", quantity=10, unit_cost=1.0, total_value=10.0),
            InventoryItem("o1", "Lavender", "oil", unit_cost=0.1, total_value=20.0, grams=200),
        ]
    )
    applied = _engine(ledger).apply(CreateProductEvent("Lotion", 5, bottles_used=10, oil_used=100, selling_price=9))

    created = ledger.require_item("Lotion", "created")
    assert (created.quantity, created.unit_cost, created.total_value) == (5.0, 4.0, 20.0)
    assert created.selling_price == 9.0
    assert ledger.require_item("Bottle").quantity == 0.0
    oil = ledger.require_item("Lavender")
    assert (oil.grams, oil.total_value) == (100.0, 10.0)
    assert applied.entry.amount == 20.0
    assert [(m.item_type, m.quantity) for m in applied.entry.consumed] == [("bottles", 10.0), ("oil", 100.0)]


def test_create_rejects_quantity_that_rounds_to_zero():
    ledger = Ledger(inventory=[InventoryItem("b1", "Bottle", "bottles", quantity=3, unit_cost=1.0, total_value=3.0)])
    before = ledger.snapshot()

    with pytest.raises(ValidationError, match="Quantity must be > 0"):
        _engine(ledger).apply(CreateProductEvent("Lotion", 0.004, bottles_used=1))
    assert ledger.snapshot() == before


def test_create_rejects_missing_bottles():
    ledger = Ledger(inventory=[InventoryItem("b1", "Bottle", "bottles", quantity=3, unit_cost=1.0, total_value=3.0)])
    before = ledger.snapshot()

    with pytest.raises(InsufficientStockError, match="Not enough bottles available"):
        _engine(ledger).apply(CreateProductEvent("Lotion", 5, bottles_used=10))

    assert ledger.snapshot() == before


@pytest.mark.parametrize(
    "amount, message",
    [
        ("abc", "must be a number"),
        (math.inf, "finite"),
        (-5, "> 0"),
        (0, "> 0"),
        (0.004, "> 0"),
        ("0.001", "> 0"),
        (None, "required"),
    ],
)
def test_amount_validation(amount, message):
    ledger = Ledger(cash=100)
    with pytest.raises(ValidationError, match=message):
        _engine(ledger).apply(CashEvent("gain", amount))
    assert ledger.cash == 100.0
    assert ledger.transactions == []


def test_expense_requires_description():
    with pytest.raises(ValidationError, match="Description is required"):
        _engine(Ledger(cash=100)).apply(CashEvent("expense", 10))


def test_cash_events_move_cash():
    ledger = Ledger(cash=100)
    engine = _engine(ledger)
    engine.apply(CashEvent("expense", 30, description="Rent"))
    engine.apply(CashEvent("loss", 5))
    engine.apply(CashEvent("gain", 12.5))

    assert ledger.cash == 77.5
    assert [t.debit_account for t in ledger.transactions] == ["Expenses", "Loss", "Cash"]


def test_partner_events_move_cash_and_capital():
    ledger = Ledger(cash=0, partners=[Partner("Ana", 100.0)])
    engine = _engine(ledger)
    engine.apply(PartnerEvent("deposit", "Ana", 50))
    engine.apply(PartnerEvent("withdrawal", "Ana", 20))
    applied = engine.apply(PartnerEvent("investing", "Ben", 300))

    assert ledger.cash == 330.0
    assert ledger.require_partner("Ana").capital == 130.0
    assert ledger.require_partner("Ben").capital == 300.0
    assert applied.entry.credit == "Ben Capital $300.00"
    assert applied.delta.capital == {"Ben": 300.0}


def test_withdrawal_from_unknown_partner_is_rejected():
    with pytest.raises(NotFoundError, match="Partner 'Zoe' not found"):
        _engine(Ledger(cash=100)).apply(PartnerEvent("withdrawal", "Zoe", 10))


def test_payable_and_receivable_move_cash():
    ledger = Ledger(cash=100)
    engine = _engine(ledger)
    borrowed = engine.apply(CounterpartyEvent("payable", "Bank", 200)).entry
    lent = engine.apply(CounterpartyEvent("receivable", "Ana", 40)).entry

    assert ledger.cash == 260.0
    assert borrowed.credit_account == "Accounts Payable - Bank"
    assert lent.debit_account == "Accounts Receivable - Ana"
    assert lent.debtor_name == "Ana"


def test_manual_inventory_entry_derives_quantity_from_unit_cost():
    ledger = Ledger(cash=100, inventory=[InventoryItem("b1", "Bottle", "bottles", quantity=10, unit_cost=2.0, total_value=20.0)])
    applied = _engine(ledger).apply(ManualEvent("Inventory - Bottle", "Cash", 10))

    item = ledger.require_item("Bottle")
    assert ledger.cash == 90.0
    assert (item.quantity, item.total_value) == (15.0, 30.0)
    assert applied.entry.quantity == 5.0


def test_manual_entry_to_partner_capital():
    ledger = Ledger(cash=0, partners=[Partner("Ana", 100.0)])
    _engine(ledger).apply(ManualEvent("Cash", "Ana Capital", 50))

    assert ledger.cash == 50.0
    assert ledger.require_partner("Ana").capital == 150.0


def test_manual_entry_needs_distinct_accounts():
    with pytest.raises(ValidationError, match="must differ"):
        _engine(Ledger()).apply(ManualEvent("Cash", "Cash", 5))


def test_unknown_kind_and_wrong_payload_are_rejected():
    engine = _engine(Ledger(cash=10))
    with pytest.raises(ValidationError, match="Unknown transaction kind"):
        engine.apply(CashEvent("refund", 5))
    with pytest.raises(ValidationError, match="SaleEvent"):
        engine.apply(CashEvent("sale", 5))
