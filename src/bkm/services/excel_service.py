from __future__ import annotations

import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from bkm.domain.ledger import Ledger
from bkm.services import statement_service as st

log = logging.getLogger(__name__)

SHEETS = (
    "Income Statement",
    "Balance Sheet",
    "General Journal",
    "Cash Flow Statement",
    "Trial Balance",
    "Inventory Ledger",
    "Sales Ledger",
)

HEADER_FILL = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
SECTION_FILL = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")


class ExcelService:
    def __init__(self, ledger: Ledger | None = None):
        self.ledger = ledger

    def export_statements(self, path: Path | str, ledger: Ledger | None = None) -> Path:
        """Write every statement of ``ledger`` (the live one by default) to one workbook."""
        lg = ledger or self.ledger
        if lg is None:
            raise ValueError("No ledger to export")

        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def header_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True, color="FFFFFF")
                c.fill = HEADER_FILL

        def title(ws, text: str):
            ws["A1"] = text
            ws["A1"].font = Font(bold=True, size=14)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        def label_values(ws, start_row: int, rows):
            """rows: (label, value, style) with style in money/section/total/None."""
            r = start_row
            for label, value, style in rows:
                ws[f"A{r}"] = label
                if value is not None:
                    ws[f"B{r}"] = value
                    money(ws[f"B{r}"])
                if style == "section":
                    ws[f"A{r}"].font = Font(bold=True)
                    ws[f"A{r}"].fill = SECTION_FILL
                elif style == "total":
                    bold_row(ws, r)
                elif style == "indent":
                    ws[f"A{r}"].alignment = Alignment(indent=2)
                r += 1
            return r

        # -------- 1) Income Statement --------
        inc = st.income_statement(lg.transactions)
        ws = wb.active
        ws.title = "Income Statement"
        title(ws, "Income Statement")
        label_values(ws, 3, [
            ("Revenue", None, "section"),
            ("Sales Revenue", inc.revenue, "indent"),
            ("Cost of Goods Sold", inc.cogs, "indent"),
            ("Gross Profit", inc.gross_profit, "total"),
            ("Gains", inc.gains, "indent"),
            ("Total Profitability", inc.total_profitability, "total"),
            ("Operating Expenses", None, "section"),
            ("Expenses", inc.expenses, "indent"),
            ("Losses", inc.losses, "indent"),
            ("Net Income", inc.net_income, "total"),
        ])
        set_widths(ws, {"A": 30, "B": 18})

        # -------- 2) Balance Sheet --------
        bs = st.balance_sheet(lg.transactions, lg.inventory, lg.cash, lg.partners)
        ws = wb.create_sheet("Balance Sheet")
        title(ws, "Balance Sheet")
        rows = [
            ("Assets", None, "section"),
            ("Cash", bs.cash, "indent"),
            ("Inventory", bs.inventory, "indent"),
        ]
        rows += [(f"Accounts Receivable - {b.name}", b.amount, "indent") for b in bs.receivables]
        rows += [
            ("Total Assets", bs.total_assets, "total"),
            ("Liabilities", None, "section"),
        ]
        rows += [(f"Accounts Payable - {b.name}", b.amount, "indent") for b in bs.payables]
        rows += [("Total Liabilities", bs.total_payables, "total"), ("Equity", None, "section")]
        rows += [(c.name, c.amount, "indent") for c in bs.capitals]
        rows += [
            ("Net Income", bs.net_income, "indent"),
            ("Total Equity", round(bs.total_capital + bs.net_income, 2), "total"),
            ("Total Liabilities and Equity", bs.total_liabilities_and_equity, "total"),
        ]
        label_values(ws, 3, rows)
        set_widths(ws, {"A": 36, "B": 18})

        # -------- 3) General Journal --------
        ws = wb.create_sheet("General Journal")
        ws.append(["Date", "Account", "Debit", "Credit", "Description", "Type"])
        header_row(ws, 1)
        for row in st.general_journal(lg.transactions):
            ws.append([row.date, row.account, row.debit, row.credit, row.description, row.entry_type])
            r = ws.max_row
            money(ws[f"C{r}"])
            money(ws[f"D{r}"])
            if row.is_credit:
                ws[f"B{r}"].alignment = Alignment(indent=3)
        ws.freeze_panes = "A2"
        set_widths(ws, {"A": 12, "B": 36, "C": 14, "D": 14, "E": 44, "F": 12})

        # -------- 4) Cash Flow Statement --------
        cf = st.cash_flow_statement(lg.transactions, lg.cash)
        ws = wb.create_sheet("Cash Flow Statement")
        title(ws, "Cash Flow Statement")
        label_values(ws, 3, [
            ("Operating Activities", None, "section"),
            ("Cash Sales", cf.cash_sales, "indent"),
            ("Gains", cf.cash_gains, "indent"),
            ("Cash Purchases", -cf.cash_purchases, "indent"),
            ("Expenses", -cf.cash_expenses, "indent"),
            ("Losses", -cf.cash_losses, "indent"),
            ("Net Cash from Operating Activities", cf.operating, "total"),
            ("Investing Activities", None, "section"),
            ("Net Cash from Investing Activities", cf.investing, "total"),
            ("Financing Activities", None, "section"),
            ("Capital Contributions", cf.capital_contributions, "indent"),
            ("Loans Received", cf.payable_inflows, "indent"),
            ("Partner Withdrawals", -cf.withdrawals, "indent"),
            ("Loans Granted", -cf.receivable_outflows, "indent"),
            ("Net Cash from Financing Activities", cf.financing, "total"),
            ("Net Change in Cash", cf.net_change, "total"),
            ("Beginning Cash", cf.beginning_cash, None),
            ("Ending Cash", cf.ending_cash, "total"),
        ])
        set_widths(ws, {"A": 38, "B": 18})

        # -------- 5) Trial Balance --------
        ws = wb.create_sheet("Trial Balance")
        ws.append(["Account", "Debit", "Credit"])
        header_row(ws, 1)
        for row in st.trial_balance(lg.transactions, lg.inventory, lg.cash, lg.partners):
            ws.append([row.account, row.debit or None, row.credit or None])
            r = ws.max_row
            money(ws[f"B{r}"])
            money(ws[f"C{r}"])
            if row.level:
                ws[f"A{r}"].alignment = Alignment(indent=2 * row.level)
            if row.kind in ("group", "total"):
                bold_row(ws, r)
            if row.kind == "type":
                ws[f"A{r}"].fill = SECTION_FILL
        ws.freeze_panes = "A2"
        set_widths(ws, {"A": 36, "B": 16, "C": 16})

        # -------- 6) Inventory Ledger --------
        inv = st.inventory_ledger(lg.inventory)
        ws = wb.create_sheet("Inventory Ledger")
        ws.append(["Product", "Type", "Quantity", "Unit Cost", "Total Value", "Details"])
        header_row(ws, 1)
        for row in inv.rows:
            ws.append([row.product, row.type.capitalize(), row.quantity_label, row.unit_cost, row.total_value, row.details])
            r = ws.max_row
            money(ws[f"D{r}"])
            money(ws[f"E{r}"])
        last_data_row = ws.max_row
        ws.append(["Total Inventory Value", None, None, None, inv.total_value, None])
        money(ws[f"E{ws.max_row}"])
        bold_row(ws, ws.max_row)
        ws.freeze_panes = "A2"
        set_widths(ws, {"A": 28, "B": 12, "C": 12, "D": 14, "E": 16, "F": 20})
        if last_data_row >= 2:
            add_table(ws, "InventoryLedger", 1, 1, last_data_row, 6)

        # -------- 7) Sales Ledger --------
        sales = st.sales_ledger(lg.transactions)
        ws = wb.create_sheet("Sales Ledger")
        ws.append(["Date", "Product", "Quantity", "Unit Price", "Unit Cost", "Total Revenue", "COGS", "Gross Profit"])
        header_row(ws, 1)
        for row in sales.rows:
            ws.append([row.date, row.product, row.quantity, row.unit_price, row.unit_cost, row.revenue, row.cogs, row.gross_profit])
            r = ws.max_row
            for col in "DEFGH":
                money(ws[f"{col}{r}"])
        last_data_row = ws.max_row
        ws.append(["Totals", None, None, None, None, sales.total_revenue, sales.total_cogs, sales.total_gross_profit])
        r = ws.max_row
        for col in "FGH":
            money(ws[f"{col}{r}"])
        bold_row(ws, r)
        ws.freeze_panes = "A2"
        set_widths(ws, {"A": 12, "B": 28, "C": 10, "D": 14, "E": 14, "F": 16, "G": 14, "H": 16})
        if last_data_row >= 2:
            add_table(ws, "SalesLedger", 1, 1, last_data_row, 8)

        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        wb.save(out)
        log.info("statements_exported path=%s transactions=%s", out, len(lg.transactions))
        return out
