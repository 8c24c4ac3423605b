"""Financial statements derived from the journal and current balances.

Every function here is pure: same input, same (frozen, comparable) output.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from bkm.domain import accounts as acc
from bkm.domain.ledger import Ledger
from bkm.domain.models import InventoryItem, Partner, Transaction, to_money


@dataclass(frozen=True)
class AccountBalance:
    name: str
    amount: float


@dataclass(frozen=True)
class IncomeStatement:
    revenue: float
    cogs: float
    gross_profit: float
    gains: float
    total_profitability: float
    expenses: float
    losses: float
    net_income: float


@dataclass(frozen=True)
class BalanceSheet:
    cash: float
    inventory: float
    receivables: tuple[AccountBalance, ...]
    total_receivables: float
    total_assets: float
    payables: tuple[AccountBalance, ...]
    total_payables: float
    net_income: float
    capitals: tuple[AccountBalance, ...]
    total_capital: float
    total_liabilities_and_equity: float


@dataclass(frozen=True)
class CashFlowStatement:
    cash_sales: float
    cash_gains: float
    cash_purchases: float
    cash_expenses: float
    cash_losses: float
    operating: float
    investing: float
    capital_contributions: float
    payable_inflows: float
    withdrawals: float
    receivable_outflows: float
    financing: float
    net_change: float
    beginning_cash: float
    ending_cash: float


@dataclass(frozen=True)
class TrialBalanceRow:
    account: str
    debit: float
    credit: float
    kind: str  # account | group | type | item | counterparty | total
    section: str
    level: int = 0


@dataclass(frozen=True)
class JournalRow:
    date: str
    account: str
    debit: Optional[float]
    credit: Optional[float]
    description: str
    entry_type: str
    is_credit: bool


@dataclass(frozen=True)
class SalesLedgerRow:
    date: str
    product: str
    quantity: float
    unit_price: float
    unit_cost: float
    revenue: float
    cogs: float
    gross_profit: float


@dataclass(frozen=True)
class SalesLedger:
    rows: tuple[SalesLedgerRow, ...]
    total_revenue: float
    total_cogs: float
    total_gross_profit: float


@dataclass(frozen=True)
class InventoryLedgerRow:
    product: str
    type: str
    quantity: float
    quantity_label: str
    unit_cost: float
    total_value: float
    details: str


@dataclass(frozen=True)
class InventoryLedger:
    rows: tuple[InventoryLedgerRow, ...]
    total_value: float


def _total(transactions: Iterable[Transaction], tx_type: str, pred: Callable[[Transaction], bool] | None = None) -> float:
    return to_money(sum(t.amount for t in transactions if t.type == tx_type and (pred is None or pred(t))))


def _sale_cogs(tx: Transaction) -> float:
    if not tx.unit_cost:
        return 0.0
    return to_money(tx.unit_cost * (tx.quantity or 1))


def _cash_paid(tx: Transaction) -> bool:
    return tx.paid_in_cash


# ---------- Income statement ----------
def income_statement(transactions: Sequence[Transaction]) -> IncomeStatement:
    revenue = _total(transactions, "sale")
    cogs = to_money(sum(_sale_cogs(t) for t in transactions if t.type == "sale"))
    gross_profit = to_money(revenue - cogs)
    gains = _total(transactions, "gain")
    total_profitability = to_money(gross_profit + gains)
    expenses = _total(transactions, "expense")
    losses = _total(transactions, "loss")
    return IncomeStatement(
        revenue=revenue,
        cogs=cogs,
        gross_profit=gross_profit,
        gains=gains,
        total_profitability=total_profitability,
        expenses=expenses,
        losses=losses,
        net_income=to_money(total_profitability - expenses - losses),
    )


# ---------- Receivables / payables ----------
def _group(pairs: Iterable[tuple[str, float]]) -> tuple[AccountBalance, ...]:
    totals: dict[str, float] = {}
    for name, amount in pairs:
        totals[name] = to_money(totals.get(name, 0.0) + amount)
    return tuple(AccountBalance(name, amount) for name, amount in totals.items() if amount != 0)


def receivables(transactions: Sequence[Transaction]) -> tuple[AccountBalance, ...]:
    """Open balances per debtor, in order of first appearance."""

    def pairs():
        for t in transactions:
            structured = t.debtor_name if t.type == "receivable" else t.customer_name if t.type == "sale" else None
            debit_name = acc.receivable_name(t.debit_account)
            if debit_name:
                yield structured or debit_name, t.amount
            credit_name = acc.receivable_name(t.credit_account)
            if credit_name:
                yield credit_name, -t.amount

    return _group(pairs())


def payables(transactions: Sequence[Transaction]) -> tuple[AccountBalance, ...]:
    """Open balances per creditor, in order of first appearance."""

    def pairs():
        for t in transactions:
            structured = t.creditor_name if t.type in ("payable", "purchase") else None
            credit_name = acc.payable_name(t.credit_account)
            if credit_name:
                yield structured or credit_name, t.amount
            debit_name = acc.payable_name(t.debit_account)
            if debit_name:
                yield debit_name, -t.amount

    return _group(pairs())


# ---------- Balance sheet ----------
def balance_sheet(
    transactions: Sequence[Transaction],
    inventory: Sequence[InventoryItem],
    cash: float,
    partners: Sequence[Partner],
) -> BalanceSheet:
    inventory_value = to_money(sum(i.total_value for i in inventory))
    ar = receivables(transactions)
    ap = payables(transactions)
    total_ar = to_money(sum(b.amount for b in ar))
    total_ap = to_money(sum(b.amount for b in ap))
    net_income = income_statement(transactions).net_income
    capitals = tuple(AccountBalance(acc.capital_account(p.name), to_money(p.capital)) for p in partners)
    total_capital = to_money(sum(c.amount for c in capitals))
    return BalanceSheet(
        cash=to_money(cash),
        inventory=inventory_value,
        receivables=ar,
        total_receivables=total_ar,
        total_assets=to_money(cash + inventory_value + total_ar),
        payables=ap,
        total_payables=total_ap,
        net_income=net_income,
        capitals=capitals,
        total_capital=total_capital,
        total_liabilities_and_equity=to_money(total_ap + net_income + total_capital),
    )


# ---------- Cash flow ----------
def cash_flow_statement(transactions: Sequence[Transaction], cash: float) -> CashFlowStatement:
    cash_sales = _total(transactions, "sale", _cash_paid)
    cash_gains = _total(transactions, "gain")
    cash_purchases = _total(transactions, "purchase", _cash_paid)
    cash_expenses = _total(transactions, "expense")
    cash_losses = _total(transactions, "loss")
    operating = to_money(cash_sales + cash_gains - cash_purchases - cash_expenses - cash_losses)

    contributions = to_money(_total(transactions, "investing") + _total(transactions, "deposit"))
    payable_inflows = _total(transactions, "payable")
    withdrawals = _total(transactions, "withdrawal")
    receivable_outflows = _total(transactions, "receivable")
    financing = to_money(contributions + payable_inflows - withdrawals - receivable_outflows)

    investing = 0.0
    net_change = to_money(operating + investing + financing)
    return CashFlowStatement(
        cash_sales=cash_sales,
        cash_gains=cash_gains,
        cash_purchases=cash_purchases,
        cash_expenses=cash_expenses,
        cash_losses=cash_losses,
        operating=operating,
        investing=investing,
        capital_contributions=contributions,
        payable_inflows=payable_inflows,
        withdrawals=withdrawals,
        receivable_outflows=receivable_outflows,
        financing=financing,
        net_change=net_change,
        beginning_cash=to_money(cash - net_change),
        ending_cash=to_money(cash),
    )


# ---------- Trial balance ----------
def _row(account: str, amount: float, normal: str, kind: str, section: str, level: int = 0) -> TrialBalanceRow:
    """Place ``amount`` on its normal side, or the other side when negative."""
    amount = to_money(amount)
    on_normal = amount >= 0
    value = abs(amount)
    debit = value if (normal == "debit") == on_normal else 0.0
    credit = value if (normal == "credit") == on_normal else 0.0
    return TrialBalanceRow(account, debit, credit, kind, section, level)


def trial_balance(
    transactions: Sequence[Transaction],
    inventory: Sequence[InventoryItem],
    cash: float,
    partners: Sequence[Partner],
) -> tuple[TrialBalanceRow, ...]:
    """Account listing with inventory broken down by type then item.

    The totals row is informational; debits and credits are not forced to agree.
    """
    rows: list[TrialBalanceRow] = [_row(acc.CASH, cash, "debit", "account", "assets")]

    by_type: dict[str, list[InventoryItem]] = {}
    for item in inventory:
        by_type.setdefault(item.type, []).append(item)
    rows.append(_row(f"{acc.INVENTORY} (Total)", sum(i.total_value for i in inventory), "debit", "group", "assets"))
    for item_type, items in by_type.items():
        rows.append(_row(item_type.capitalize(), sum(i.total_value for i in items), "debit", "type", "assets", 1))
        rows.extend(_row(i.name, i.total_value, "debit", "item", "assets", 2) for i in items)

    ar = receivables(transactions)
    if ar:
        rows.append(_row("Accounts Receivable (Total)", sum(b.amount for b in ar), "debit", "group", "assets"))
        rows.extend(_row(b.name, b.amount, "debit", "counterparty", "assets", 1) for b in ar)
    ap = payables(transactions)
    if ap:
        rows.append(_row("Accounts Payable (Total)", sum(b.amount for b in ap), "credit", "group", "liabilities"))
        rows.extend(_row(b.name, b.amount, "credit", "counterparty", "liabilities", 1) for b in ap)

    inc = income_statement(transactions)
    rows.append(_row(acc.REVENUE, inc.revenue, "credit", "account", "income"))
    rows.append(_row(acc.GAIN, inc.gains, "credit", "account", "income"))
    rows.append(_row(acc.EXPENSES, inc.expenses, "debit", "account", "expenses"))
    rows.append(_row(acc.LOSS, inc.losses, "debit", "account", "expenses"))
    rows.extend(_row(acc.capital_account(p.name), p.capital, "credit", "account", "equity") for p in partners)

    top = [r for r in rows if r.level == 0]
    rows.append(
        TrialBalanceRow(
            account="Total",
            debit=to_money(sum(r.debit for r in top)),
            credit=to_money(sum(r.credit for r in top)),
            kind="total",
            section="total",
        )
    )
    return tuple(rows)


# ---------- Journal and ledgers ----------
def general_journal(transactions: Sequence[Transaction]) -> tuple[JournalRow, ...]:
    """Entries grouped by date (first appearance), credit line under each debit line."""
    by_date: dict[str, list[Transaction]] = {}
    for t in transactions:
        by_date.setdefault(t.date, []).append(t)

    rows: list[JournalRow] = []
    for day, entries in by_date.items():
        for idx, t in enumerate(entries):
            rows.append(JournalRow(day if idx == 0 else "", t.debit_account, t.amount, None, t.description, t.type, False))
            rows.append(JournalRow("", t.credit_account, None, t.amount, "", t.type, True))
    return tuple(rows)


def sales_ledger(transactions: Sequence[Transaction]) -> SalesLedger:
    rows = []
    for t in transactions:
        if t.type != "sale":
            continue
        qty = t.quantity or 1
        cogs = _sale_cogs(t)
        rows.append(
            SalesLedgerRow(
                date=t.date,
                product=t.product_name or "Unknown",
                quantity=qty,
                unit_price=to_money(t.amount / qty),
                unit_cost=to_money(t.unit_cost or 0.0),
                revenue=t.amount,
                cogs=cogs,
                gross_profit=to_money(t.amount - cogs),
            )
        )
    revenue = to_money(sum(r.revenue for r in rows))
    cogs = to_money(sum(r.cogs for r in rows))
    return SalesLedger(tuple(rows), revenue, cogs, to_money(revenue - cogs))


def inventory_ledger(inventory: Sequence[InventoryItem]) -> InventoryLedger:
    rows = []
    for item in inventory:
        details = []
        if item.milliliters:
            details.append(f"{item.milliliters:g}ml")
        if item.grams and not item.is_oil:
            details.append(f"{item.grams:g}g")
        rows.append(
            InventoryLedgerRow(
                product=item.name,
                type=item.type,
                quantity=item.on_hand,
                quantity_label=f"{item.on_hand:g}g" if item.is_oil else f"{item.on_hand:g}",
                unit_cost=item.unit_cost,
                total_value=item.total_value,
                details=" | ".join(details),
            )
        )
    return InventoryLedger(tuple(rows), to_money(sum(r.total_value for r in rows)))


class StatementService:
    """Statements for the live ledger."""

    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    def income_statement(self) -> IncomeStatement:
        return income_statement(self.ledger.transactions)

    def balance_sheet(self) -> BalanceSheet:
        lg = self.ledger
        return balance_sheet(lg.transactions, lg.inventory, lg.cash, lg.partners)

    def cash_flow_statement(self) -> CashFlowStatement:
        return cash_flow_statement(self.ledger.transactions, self.ledger.cash)

    def trial_balance(self) -> tuple[TrialBalanceRow, ...]:
        lg = self.ledger
        return trial_balance(lg.transactions, lg.inventory, lg.cash, lg.partners)

    def general_journal(self) -> tuple[JournalRow, ...]:
        return general_journal(self.ledger.transactions)

    def sales_ledger(self) -> SalesLedger:
        return sales_ledger(self.ledger.transactions)

    def inventory_ledger(self) -> InventoryLedger:
        return inventory_ledger(self.ledger.inventory)

    def receivables(self) -> tuple[AccountBalance, ...]:
        return receivables(self.ledger.transactions)

    def payables(self) -> tuple[AccountBalance, ...]:
        return payables(self.ledger.transactions)
