from datetime import date

from conftest import FixedClock, id_sequence, make_service

from bkm.domain.events import (
    CashEvent,
    CounterpartyEvent,
    CreateProductEvent,
    ManualEvent,
    PurchaseEvent,
    SaleEvent,
)
from bkm.domain.ledger import Ledger
from bkm.domain.models import InventoryItem, Partner
from bkm.services import statement_service as st
from bkm.services.statement_service import AccountBalance, StatementService
from bkm.services.transaction_engine import TransactionEngine


def _trading_period():
    service = make_service()
    service.setup_partners([("A", 500), ("B", 500)])
    service.record(PurchaseEvent("Bottle", "bottles", unit_cost=1, quantity=10))
    service.record(CreateProductEvent("Lotion", 5, bottles_used=10, selling_price=5))
    service.record(SaleEvent("Lotion", 5))
    service.record(CashEvent("expense", 3, description="Labels"))
    service.record(CashEvent("gain", 2))
    service.record(CashEvent("loss", 1))
    return service


def test_income_statement():
    inc = StatementService(_trading_period().ledger).income_statement()

    assert inc == st.IncomeStatement(
        revenue=25.0,
        cogs=10.0,
        gross_profit=15.0,
        gains=2.0,
        total_profitability=17.0,
        expenses=3.0,
        losses=1.0,
        net_income=13.0,
    )


def test_cash_flow_statement():
    ledger = _trading_period().ledger
    cf = st.cash_flow_statement(ledger.transactions, ledger.cash)

    assert ledger.cash == 1013.0
    assert cf.operating == 13.0
    assert cf.investing == 0.0
    assert cf.financing == 1000.0
    assert cf.net_change == 1013.0
    assert cf.beginning_cash == 0.0


def test_balance_sheet_balances_for_a_cash_business():
    ledger = _trading_period().ledger
    bs = st.balance_sheet(ledger.transactions, ledger.inventory, ledger.cash, ledger.partners)

    assert bs.total_assets == 1013.0
    assert bs.net_income == 13.0
    assert bs.total_capital == 1000.0
    assert bs.total_liabilities_and_equity == 1013.0


def test_statements_are_deterministic():
    ledger = _trading_period().ledger
    args = (ledger.transactions, ledger.inventory, ledger.cash, ledger.partners)

    assert st.income_statement(ledger.transactions) == st.income_statement(ledger.transactions)
    assert st.balance_sheet(*args) == st.balance_sheet(*args)
    assert st.cash_flow_statement(ledger.transactions, ledger.cash) == st.cash_flow_statement(ledger.transactions, ledger.cash)
    assert st.trial_balance(*args) == st.trial_balance(*args)
    assert st.general_journal(ledger.transactions) == st.general_journal(ledger.transactions)
    assert st.sales_ledger(ledger.transactions) == st.sales_ledger(ledger.transactions)
    assert st.inventory_ledger(ledger.inventory) == st.inventory_ledger(ledger.inventory)


def test_trial_balance_inventory_rows_per_type_and_item():
    inventory = [
        InventoryItem("1", "Bottle A", "bottles", quantity=2, unit_cost=1.0, total_value=2.0),
        InventoryItem("2", "Lavender", "oil", unit_cost=0.1, total_value=5.0, grams=50),
        InventoryItem("3", "Bottle B", "bottles", quantity=1, unit_cost=3.0, total_value=3.0),
        InventoryItem("4", "Gift Box", "box", quantity=4, unit_cost=0.5, total_value=2.0),
    ]
    rows = st.trial_balance([], inventory, 100.0, [Partner("A", 112.0)])

    assert len([r for r in rows if r.kind == "type"]) == 3
    assert len([r for r in rows if r.kind == "item"]) == 4
    assert [r.account for r in rows if r.kind == "type"] == ["Bottles", "Oil", "Box"]

    by_account = {r.account: r for r in rows}
    assert by_account["Inventory (Total)"].debit == 12.0
    assert by_account["Bottles"].debit == 5.0
    assert by_account["A Capital"].credit == 112.0
    assert rows[-1].kind == "total"
    assert (rows[-1].debit, rows[-1].credit) == (112.0, 112.0)


def test_trial_balance_puts_negative_cash_on_credit_side():
    rows = st.trial_balance([], [], -20.0, [])
    assert (rows[0].debit, rows[0].credit) == (0.0, 20.0)


def test_receivables_and_payables_per_counterparty():
    lotion = InventoryItem("c1", "Lotion", "created", quantity=5, unit_cost=2.0, total_value=10.0)
    service = make_service(ledger=Ledger(cash=100, inventory=[lotion]))
    service.record(SaleEvent("Lotion", 2, unit_price=5, payment_method="credit", customer_name="Ana"))
    service.record(CounterpartyEvent("receivable", "Ana", 5))
    service.record(CounterpartyEvent("receivable", "Ben", 7))
    service.record(ManualEvent("Cash", "Accounts Receivable - Ana", 4, description="Ana paid part"))
    service.record(PurchaseEvent("Bottle", "bottles", unit_cost=2, quantity=10, payment_method="credit", creditor_name="Supplier"))
    service.record(CounterpartyEvent("payable", "Bank", 100))
    service.record(ManualEvent("Accounts Payable - Supplier", "Cash", 20, description="Paid supplier"))

    statements = StatementService(service.ledger)
    assert statements.receivables() == (AccountBalance("Ana", 11.0), AccountBalance("Ben", 7.0))
    assert statements.payables() == (AccountBalance("Bank", 100.0),)

    rows = statements.trial_balance()
    assert [r.account for r in rows if r.kind == "counterparty"] == ["Ana", "Ben", "Bank"]


def test_general_journal_groups_by_date_and_indents_credits():
    ledger = Ledger(cash=100)
    clock = FixedClock(date(2024, 1, 1))
    engine = TransactionEngine(ledger, clock=clock, id_factory=id_sequence())
    engine.apply(CashEvent("gain", 10))
    engine.apply(CashEvent("expense", 4, description="Tape"))
    clock.day = date(2024, 1, 2)
    engine.apply(CashEvent("gain", 6))

    rows = st.general_journal(ledger.transactions)

    assert [r.date for r in rows] == ["1/1/2024", "", "", "", "1/2/2024", ""]
    assert [r.is_credit for r in rows] == [False, True] * 3
    assert (rows[2].account, rows[2].debit, rows[3].account, rows[3].credit) == ("Expenses", 4.0, "Cash", 4.0)


def test_sales_ledger_rows_and_totals():
    ledger = _trading_period().ledger
    sales = st.sales_ledger(ledger.transactions)

    assert len(sales.rows) == 1
    row = sales.rows[0]
    assert (row.product, row.quantity, row.unit_price, row.unit_cost) == ("Lotion", 5.0, 5.0, 2.0)
    assert (sales.total_revenue, sales.total_cogs, sales.total_gross_profit) == (25.0, 10.0, 15.0)


def test_inventory_ledger_labels_oil_in_grams():
    inventory = [
        InventoryItem("1", "Lavender", "oil", unit_cost=0.2, total_value=100.0, grams=500, milliliters=550),
        InventoryItem("2", "Bottle", "bottles", quantity=3, unit_cost=1.0, total_value=3.0),
    ]
    ledger = st.inventory_ledger(inventory)

    assert [r.quantity_label for r in ledger.rows] == ["500g", "3"]
    assert ledger.rows[0].details == "550ml"
    assert ledger.total_value == 103.0
