from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable, Iterable, Optional

from bkm.domain import accounts as acc
from bkm.domain.errors import (
    ConsistencyError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
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
from bkm.domain.models import (
    ITEM_TYPES,
    PAYMENT_METHODS,
    ConsumedMaterial,
    InventoryItem,
    Partner,
    Transaction,
    format_date,
    to_money,
)

log = logging.getLogger("bkm.journal")

EDITABLE_FIELDS = {
    "amount",
    "description",
    "date",
    "payment_method",
    "partner_name",
    "creditor_name",
    "debtor_name",
    "customer_name",
    "order_number",
    "note",
}

PURCHASABLE_TYPES = ("bottles", "oil", "box", "other")


@dataclass
class BalanceDelta:
    cash: float = 0.0
    total_sales: float = 0.0
    # "<type>/<name>" -> change in quantity (grams for oil)
    inventory: dict[str, float] = field(default_factory=dict)
    capital: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class AppliedTransaction:
    entry: Transaction
    delta: BalanceDelta


def parse_amount(value, field_name: str, *, allow_zero: bool = False) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required.")
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number.")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_name} must be a number.") from e
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a finite number.")
    number = to_money(number)
    if allow_zero and number < 0:
        raise ValidationError(f"{field_name} must be >= 0.")
    if not allow_zero and number <= 0:
        raise ValidationError(f"{field_name} must be > 0.")
    return number


def optional_amount(value, field_name: str) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0.0
    return parse_amount(value, field_name, allow_zero=True)


def _required_text(value: Optional[str], field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} is required.")
    return text


def _qty_label(qty: float) -> str:
    return f"{qty:g}"


def manual_cash_sign(debit_account: str, credit_account: str) -> int:
    return int(acc.has_token(debit_account, acc.CASH)) - int(acc.has_token(credit_account, acc.CASH))


def manual_inventory_sign(debit_account: str, credit_account: str) -> int:
    return int(acc.has_token(debit_account, acc.INVENTORY)) - int(acc.has_token(credit_account, acc.INVENTORY))


def cash_effect(tx: Transaction) -> float:
    """Signed change in cash caused by a journal entry."""
    t = tx.type
    if t in ("purchase",):
        return -tx.amount if tx.paid_in_cash else 0.0
    if t == "sale":
        return tx.amount if tx.paid_in_cash else 0.0
    if t in ("expense", "loss", "withdrawal", "receivable"):
        return -tx.amount
    if t in ("gain", "deposit", "investing", "payable"):
        return tx.amount
    if t in ("manual", "closing"):
        return manual_cash_sign(tx.debit_account, tx.credit_account) * tx.amount
    return 0.0


def capital_effects(tx: Transaction, partner_names: Iterable[str]) -> dict[str, float]:
    if tx.type == "withdrawal":
        return {tx.partner_name: -tx.amount}
    if tx.type in ("deposit", "investing"):
        return {tx.partner_name: tx.amount}
    if tx.type not in ("manual", "closing"):
        return {}
    effects: dict[str, float] = {}
    for name in partner_names:
        account = acc.capital_account(name)
        if tx.debit_account == account:
            effects[name] = effects.get(name, 0.0) - tx.amount
        if tx.credit_account == account:
            effects[name] = effects.get(name, 0.0) + tx.amount
    return effects


class TransactionEngine:
    """Applies typed events to a ledger and appends the matching journal entry.

    Every handler validates its whole payload before touching balances, but
    reversals inside edit/delete can still fail half way; callers run the
    engine inside a unit of work that restores the pre-call snapshot.
    """

    def __init__(
        self,
        ledger: Ledger,
        clock: Callable[[], date] | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self.ledger = ledger
        self.clock = clock or date.today
        self.id_factory = id_factory or (lambda: uuid.uuid4().hex)
        self._delta = BalanceDelta()
        self._handlers = {
            "purchase": (PurchaseEvent, self._purchase),
            "sale": (SaleEvent, self._sale),
            "create": (CreateProductEvent, self._create),
            "expense": (CashEvent, self._cash),
            "loss": (CashEvent, self._cash),
            "gain": (CashEvent, self._cash),
            "withdrawal": (PartnerEvent, self._partner),
            "deposit": (PartnerEvent, self._partner),
            "investing": (PartnerEvent, self._partner),
            "payable": (CounterpartyEvent, self._counterparty),
            "receivable": (CounterpartyEvent, self._counterparty),
            "manual": (ManualEvent, self._manual),
            "closing": (ManualEvent, self._manual),
        }

    # ---------- Public operations ----------
    def apply(self, event) -> AppliedTransaction:
        kind = getattr(event, "kind", None)
        if kind not in self._handlers:
            raise ValidationError(f"Unknown transaction kind: {kind!r}")
        event_type, handler = self._handlers[kind]
        if not isinstance(event, event_type):
            raise ValidationError(f"'{kind}' transactions need a {event_type.__name__}.")

        self._delta = BalanceDelta()
        entry = handler(event)
        self.ledger.append(entry)
        log.info(
            "transaction_recorded id=%s type=%s amount=%.2f cash=%.2f",
            entry.id, entry.type, entry.amount, self.ledger.cash,
        )
        return AppliedTransaction(entry=entry, delta=self._delta)

    def edit_transaction(self, tx_id: str, **changes) -> AppliedTransaction:
        old = self.ledger.require_transaction(tx_id)
        if old.type == "create":
            raise ConsistencyError("Create transactions cannot be edited.")

        allowed = EDITABLE_FIELDS | ({"quantity"} if old.type == "sale" else set())
        unknown = sorted(set(changes) - allowed)
        if unknown:
            raise ValidationError(f"Fields not editable for {old.type}: {', '.join(unknown)}")

        fields = dict(changes)
        if "amount" in fields:
            fields["amount"] = parse_amount(fields["amount"], "Amount", allow_zero=old.type == "closing")
        if "quantity" in fields:
            fields["quantity"] = parse_amount(fields["quantity"], "Quantity")
            if old.box_quantity:
                fields["box_quantity"] = fields["quantity"]
        if "payment_method" in fields:
            fields["payment_method"] = self._payment(fields["payment_method"])

        new = self._with_accounts(replace(old, **fields))
        if new.type in ("manual", "closing") and new.product_name and new.amount != old.amount:
            new = self._requantify(new)

        self._delta = BalanceDelta()
        self._effects(old, -1)
        self._effects(new, +1)
        self.ledger.replace(new)
        log.info("transaction_edited id=%s type=%s amount=%.2f->%.2f", new.id, new.type, old.amount, new.amount)
        return AppliedTransaction(entry=new, delta=self._delta)

    def delete_transaction(self, tx_id: str) -> AppliedTransaction:
        tx = self.ledger.require_transaction(tx_id)
        self._delta = BalanceDelta()
        self._effects(tx, -1)
        self.ledger.remove_transaction(tx_id)
        log.info("transaction_deleted id=%s type=%s amount=%.2f", tx.id, tx.type, tx.amount)
        return AppliedTransaction(entry=tx, delta=self._delta)

    # ---------- Balance primitives ----------
    def _move_cash(self, amount: float) -> None:
        self.ledger.cash = to_money(self.ledger.cash + amount)
        self._delta.cash = to_money(self._delta.cash + amount)

    def _move_sales(self, amount: float) -> None:
        self.ledger.total_sales = to_money(self.ledger.total_sales + amount)
        self._delta.total_sales = to_money(self._delta.total_sales + amount)

    def _move_stock(self, item: InventoryItem, qty: float) -> None:
        after = to_money(item.on_hand + qty)
        if after < 0:
            raise InsufficientStockError(
                f"Not enough {item.name} available. Available: {_qty_label(item.on_hand)}"
            )
        if item.is_oil:
            item.grams = after
        else:
            item.quantity = after
        item.revalue()
        key = f"{item.type}/{item.name}"
        self._delta.inventory[key] = to_money(self._delta.inventory.get(key, 0.0) + qty)

    def _move_capital(self, name: str, amount: float) -> None:
        partner = self.ledger.find_partner(name)
        if partner is None:
            raise ConsistencyError(f"Partner '{name}' no longer exists.")
        partner.capital = to_money(partner.capital + amount)
        self._delta.capital[name] = to_money(self._delta.capital.get(name, 0.0) + amount)

    # ---------- Event handlers ----------
    def _purchase(self, ev: PurchaseEvent) -> Transaction:
        name = _required_text(ev.product_name, "Product name")
        item_type = (ev.product_type or "").strip().lower()
        if item_type not in PURCHASABLE_TYPES:
            raise ValidationError(f"Product type must be one of: {', '.join(PURCHASABLE_TYPES)}.")
        unit_cost = parse_amount(ev.unit_cost, "Unit cost", allow_zero=True)
        payment = self._payment(ev.payment_method)
        if item_type == "oil":
            qty = parse_amount(ev.grams, "Grams")
        else:
            qty = parse_amount(ev.quantity, "Quantity")
        creditor = _required_text(ev.creditor_name, "Creditor name") if payment == "credit" else None
        milliliters = optional_amount(ev.milliliters, "Milliliters") or None
        amount = to_money(qty * unit_cost)

        item = self.ledger.find_item(name, item_type)
        if item is None:
            item = self.ledger.upsert_item(
                InventoryItem(
                    id=self.id_factory(),
                    name=name,
                    type=item_type,
                    grams=0.0 if item_type == "oil" else None,
                )
            )
        # latest purchase price replaces the old unit cost
        item.unit_cost = unit_cost
        if milliliters:
            item.milliliters = milliliters
        self._move_stock(item, qty)
        if payment == "cash":
            self._move_cash(-amount)

        qty_text = f"{_qty_label(qty)}g" if item_type == "oil" else _qty_label(qty)
        return self._with_accounts(
            Transaction(
                id=self.id_factory(),
                date=self._today(),
                type="purchase",
                description=ev.description or f"Purchased {qty_text} {item_type} - {name}",
                amount=amount,
                debit_account="",
                credit_account="",
                payment_method=payment,
                product_name=name,
                product_type=item_type,
                quantity=None if item_type == "oil" else qty,
                grams=qty if item_type == "oil" else None,
                unit_cost=unit_cost,
                creditor_name=creditor,
                note=ev.note,
            )
        )

    def _sale(self, ev: SaleEvent) -> Transaction:
        name = _required_text(ev.product_name, "Product name")
        qty = parse_amount(ev.quantity, "Quantity")
        item = self._sellable_item(name, ev.product_type)
        price_input = ev.unit_price if ev.unit_price not in (None, "") else item.selling_price
        price = parse_amount(price_input, "Unit price", allow_zero=True)
        payment = self._payment(ev.payment_method)
        customer = _required_text(ev.customer_name, "Customer name") if payment == "credit" else ev.customer_name
        if item.on_hand < qty:
            raise InsufficientStockError(
                f"Not enough {item.name} available. Available: {_qty_label(item.on_hand)}"
            )

        box = None
        box_price = 0.0
        if ev.is_boxed:
            box = self.ledger.require_item(ev.box_name, "box") if ev.box_name else self.ledger.first_item_of_type("box")
            if box is None:
                raise NotFoundError("No boxes in inventory.")
            if box.quantity < qty:
                raise InsufficientStockError(f"Not enough boxes available. Available: {_qty_label(box.quantity)}")
            box_price = optional_amount(ev.box_price, "Box price")

        amount = to_money(to_money(qty * price) + box_price)
        unit_cost = to_money(item.unit_cost + (box.unit_cost if box else 0.0))

        self._move_stock(item, -qty)
        if box is not None:
            self._move_stock(box, -qty)
        if payment == "cash":
            self._move_cash(amount)
        self._move_sales(amount)

        return self._with_accounts(
            Transaction(
                id=self.id_factory(),
                date=self._today(),
                type="sale",
                description=f"Sold {_qty_label(qty)} {name}{' (boxed)' if box else ''}",
                amount=amount,
                debit_account="",
                credit_account="",
                payment_method=payment,
                product_name=item.name,
                product_type=item.type,
                quantity=qty,
                unit_cost=unit_cost,
                customer_name=customer,
                order_number=ev.order_number,
                note=ev.note,
                box_name=box.name if box else None,
                box_quantity=qty if box else None,
            )
        )

    def _create(self, ev: CreateProductEvent) -> Transaction:
        name = _required_text(ev.name, "Product name")
        qty = parse_amount(ev.quantity, "Quantity")
        bottles_used = optional_amount(ev.bottles_used, "Bottles used")
        oil_used = optional_amount(ev.oil_used, "Oil used")
        if bottles_used == 0 and oil_used == 0:
            raise ValidationError("Creating a product needs bottles or oil.")
        selling_price = None
        if ev.selling_price not in (None, ""):
            selling_price = parse_amount(ev.selling_price, "Selling price", allow_zero=True)

        bottle = self._material("bottles", ev.bottle_name, bottles_used) if bottles_used else None
        oil = self._material("oil", ev.oil_name, oil_used) if oil_used else None

        bottle_cost = to_money(bottle.unit_cost * bottles_used) if bottle else 0.0
        oil_cost = to_money(oil.unit_cost * oil_used) if oil else 0.0
        total_cost = to_money(bottle_cost + oil_cost)
        unit_cost = to_money(total_cost / qty)

        consumed: list[ConsumedMaterial] = []
        if bottle is not None:
            self._move_stock(bottle, -bottles_used)
            consumed.append(ConsumedMaterial("bottles", bottle.name, bottles_used))
        if oil is not None:
            self._move_stock(oil, -oil_used)
            consumed.append(ConsumedMaterial("oil", oil.name, oil_used))

        created = self.ledger.find_item(name, "created")
        if created is None:
            created = self.ledger.upsert_item(InventoryItem(id=self.id_factory(), name=name, type="created"))
        created.unit_cost = unit_cost
        if selling_price is not None:
            created.selling_price = selling_price
        self._move_stock(created, qty)

        return Transaction(
            id=self.id_factory(),
            date=self._today(),
            type="create",
            description=(
                f"Created {_qty_label(qty)} {name} using {_qty_label(bottles_used)} bottles "
                f"and {_qty_label(oil_used)}g oil"
            ),
            amount=total_cost,
            debit_account=acc.inventory_account(name),
            credit_account=acc.INVENTORY,
            product_name=name,
            product_type="created",
            quantity=qty,
            unit_cost=unit_cost,
            consumed=tuple(consumed),
        )

    def _cash(self, ev: CashEvent) -> Transaction:
        amount = parse_amount(ev.amount, "Amount")
        description = (ev.description or "").strip()
        if ev.kind == "expense" and not description:
            raise ValidationError("Description is required for expenses.")
        default = {"gain": "Business gain", "loss": "Business loss"}.get(ev.kind, "")

        self._move_cash(amount if ev.kind == "gain" else -amount)
        return self._with_accounts(
            Transaction(
                id=self.id_factory(),
                date=self._today(),
                type=ev.kind,
                description=description or default,
                amount=amount,
                debit_account="",
                credit_account="",
                payment_method="cash",
                note=ev.note,
            )
        )

    def _partner(self, ev: PartnerEvent) -> Transaction:
        name = _required_text(ev.partner_name, "Partner name")
        amount = parse_amount(ev.amount, "Amount")
        partner = self.ledger.find_partner(name)
        if partner is None:
            if ev.kind != "investing":
                raise NotFoundError(f"Partner '{name}' not found.")
            partner = self.ledger.add_partner(Partner(name=name, capital=0.0))

        sign = -1 if ev.kind == "withdrawal" else 1
        self._move_cash(sign * amount)
        self._move_capital(partner.name, sign * amount)

        description = {
            "withdrawal": f"Capital withdrawal by {name}",
            "deposit": f"Capital deposit by {name}",
            "investing": f"Capital investment by {name}",
        }[ev.kind]
        return self._with_accounts(
            Transaction(
                id=self.id_factory(),
                date=self._today(),
                type=ev.kind,
                description=description,
                amount=amount,
                debit_account="",
                credit_account="",
                payment_method="cash",
                partner_name=name,
                note=ev.note,
            )
        )

    def _counterparty(self, ev: CounterpartyEvent) -> Transaction:
        label = "Creditor name" if ev.kind == "payable" else "Debtor name"
        name = _required_text(ev.name, label)
        amount = parse_amount(ev.amount, "Amount")

        self._move_cash(amount if ev.kind == "payable" else -amount)
        default = f"Borrowed from {name}" if ev.kind == "payable" else f"Lent to {name}"
        return self._with_accounts(
            Transaction(
                id=self.id_factory(),
                date=self._today(),
                type=ev.kind,
                description=(ev.description or "").strip() or default,
                amount=amount,
                debit_account="",
                credit_account="",
                payment_method="cash",
                creditor_name=name if ev.kind == "payable" else None,
                debtor_name=name if ev.kind == "receivable" else None,
                note=ev.note,
            )
        )

    def _manual(self, ev: ManualEvent) -> Transaction:
        debit = _required_text(ev.debit_account, "Debit account")
        credit = _required_text(ev.credit_account, "Credit account")
        if debit == credit:
            raise ValidationError("Debit and credit accounts must differ.")
        amount = parse_amount(ev.amount, "Amount", allow_zero=ev.kind == "closing")

        item = None
        qty = None
        inv_sign = manual_inventory_sign(debit, credit)
        if inv_sign:
            item_name = ev.product_name or acc.inventory_item_name(debit if inv_sign > 0 else credit)
            if not item_name:
                raise ValidationError("Inventory entries need a product name ('Inventory - <name>').")
            item = self.ledger.require_item(item_name)
            if item.unit_cost <= 0:
                raise ValidationError(f"'{item.name}' has no unit cost to derive a quantity from.")
            qty = to_money(amount / item.unit_cost)
            if inv_sign < 0 and item.on_hand < qty:
                raise InsufficientStockError(
                    f"Not enough {item.name} available. Available: {_qty_label(item.on_hand)}"
                )

        tx = Transaction(
            id=self.id_factory(),
            date=self._today(),
            type=ev.kind,
            description=(ev.description or "").strip() or ("Closing entry" if ev.kind == "closing" else "Manual entry"),
            amount=amount,
            debit_account=debit,
            credit_account=credit,
            product_name=item.name if item else None,
            product_type=item.type if item else None,
            quantity=qty if item and not item.is_oil else None,
            grams=qty if item and item.is_oil else None,
            unit_cost=item.unit_cost if item else None,
            note=ev.note,
        )
        self._effects(tx, +1)
        return tx

    # ---------- Effects shared by edit/delete ----------
    def _effects(self, tx: Transaction, sign: int) -> None:
        self._move_cash(sign * cash_effect(tx))
        if tx.type == "sale":
            self._move_sales(sign * tx.amount)
        for name, amount in capital_effects(tx, [p.name for p in self.ledger.partners]).items():
            self._move_capital(name, sign * amount)

        if tx.type == "purchase":
            self._revalue_purchase(tx, sign)
        elif tx.type == "sale":
            item = self._entry_item(tx, tx.product_name, tx.product_type)
            self._move_stock(item, -sign * (tx.quantity or 0.0))
            if tx.box_name:
                self._move_stock(self._entry_item(tx, tx.box_name, "box"), -sign * (tx.box_quantity or 0.0))
        elif tx.type == "create":
            if sign > 0:
                raise ConsistencyError("Create transactions cannot be re-applied.")
            self._reverse_create(tx)
        elif tx.type in ("manual", "closing") and tx.product_name:
            item = self._entry_item(tx, tx.product_name, tx.product_type)
            qty = (tx.grams if item.is_oil else tx.quantity) or 0.0
            self._move_stock(item, sign * manual_inventory_sign(tx.debit_account, tx.credit_account) * qty)

    def _requantify(self, tx: Transaction) -> Transaction:
        # priced at the unit cost recorded on the entry, not the item's current one
        if not tx.unit_cost or tx.unit_cost <= 0:
            raise ConsistencyError(f"Entry {tx.id} has no unit cost to derive a quantity from.")
        qty = to_money(tx.amount / tx.unit_cost)
        if tx.grams is not None:
            return replace(tx, grams=qty)
        return replace(tx, quantity=qty)

    def _revalue_purchase(self, tx: Transaction, sign: int) -> None:
        # Only value moves; the purchased quantity stays on hand.
        item = self._entry_item(tx, tx.product_name, tx.product_type)
        if item.on_hand <= 0:
            raise ConsistencyError(f"Cannot revalue '{item.name}': no stock left on hand.")
        item.total_value = to_money(item.total_value + sign * tx.amount)
        item.unit_cost = to_money(item.total_value / item.on_hand)

    def _reverse_create(self, tx: Transaction) -> None:
        if tx.amount > 0 and not tx.consumed:
            raise ConsistencyError("Create transaction has no record of the materials it consumed.")
        created = self._entry_item(tx, tx.product_name, "created")
        if created.on_hand < (tx.quantity or 0.0):
            raise ConsistencyError(f"Units of '{created.name}' were already sold; cannot undo its creation.")
        self._move_stock(created, -(tx.quantity or 0.0))
        for material in tx.consumed:
            self._move_stock(self._entry_item(tx, material.name, material.item_type), material.quantity)

    # ---------- Helpers ----------
    def _today(self) -> str:
        return format_date(self.clock())

    def _payment(self, value: Optional[str]) -> str:
        method = (value or "cash").strip().lower()
        if method not in PAYMENT_METHODS:
            raise ValidationError(f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}.")
        return method

    def _sellable_item(self, name: str, item_type: Optional[str]) -> InventoryItem:
        if item_type:
            if item_type not in ITEM_TYPES:
                raise ValidationError(f"Unknown product type: {item_type}")
            return self.ledger.require_item(name, item_type)
        return self.ledger.find_item(name, "created") or self.ledger.require_item(name)

    def _material(self, item_type: str, name: Optional[str], needed: float) -> InventoryItem:
        item = self.ledger.require_item(name, item_type) if name else self.ledger.first_item_of_type(item_type)
        if item is None:
            raise NotFoundError(f"No {item_type} in inventory.")
        if item.on_hand < needed:
            raise InsufficientStockError(
                f"Not enough {item_type} available. Available: {_qty_label(item.on_hand)}"
            )
        return item

    def _entry_item(self, tx: Transaction, name: Optional[str], item_type: Optional[str]) -> InventoryItem:
        item = self.ledger.find_item(name or "", item_type)
        if item is None:
            raise ConsistencyError(f"Transaction {tx.id} refers to missing item '{name}'.")
        return item

    def _with_accounts(self, tx: Transaction) -> Transaction:
        """Derive the account pair from type, payment method and names."""
        t = tx.type
        method = tx.payment_method or "cash"

        def settlement(counterparty_account: Callable[[str], str], name: Optional[str], label: str) -> str:
            if method == "credit":
                return counterparty_account(_required_text(name, label))
            return acc.CASH if method == "cash" else acc.OTHER_PAYMENT

        if t == "purchase":
            pair = (acc.inventory_account(tx.product_name), settlement(acc.payable_account, tx.creditor_name, "Creditor name"))
        elif t == "sale":
            pair = (settlement(acc.receivable_account, tx.customer_name, "Customer name"), acc.REVENUE)
        elif t == "expense":
            pair = (acc.EXPENSES, acc.CASH)
        elif t == "loss":
            pair = (acc.LOSS, acc.CASH)
        elif t == "gain":
            pair = (acc.CASH, acc.GAIN)
        elif t == "withdrawal":
            pair = (acc.capital_account(_required_text(tx.partner_name, "Partner name")), acc.CASH)
        elif t in ("deposit", "investing"):
            pair = (acc.CASH, acc.capital_account(_required_text(tx.partner_name, "Partner name")))
        elif t == "payable":
            pair = (acc.CASH, acc.payable_account(_required_text(tx.creditor_name, "Creditor name")))
        elif t == "receivable":
            pair = (acc.receivable_account(_required_text(tx.debtor_name, "Debtor name")), acc.CASH)
        else:
            return tx
        return replace(tx, debit_account=pair[0], credit_account=pair[1])
