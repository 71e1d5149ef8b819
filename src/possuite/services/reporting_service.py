from __future__ import annotations

from collections import Counter, defaultdict
from typing import Iterable

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from possuite.domain.models import PAYMENT_METHODS, SaleRecord
from possuite.services.analytics_service import filter_sales


class ReportingService:
    def __init__(self, sales_service):
        self.sales = sales_service

    def export_sales_report_excel(self, path: str, sales: Iterable[SaleRecord], window_label: str = "") -> None:
        sales = list(sales)
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

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

        revenue = sum(float(s.total) for s in sales)
        tax = sum(float(s.tax) for s in sales)
        items = sum(s.item_count for s in sales)

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Summary"
        ws["A1"].font = Font(bold=True, size=14)

        ws["A3"] = "Window"
        ws["B3"] = window_label or "All sales"

        rows = [
            ("Sales count", len(sales), "int"),
            ("Items sold", items, "int"),
            ("Revenue", revenue, "money"),
            ("Tax collected", tax, "money"),
            ("Average order value", revenue / len(sales) if sales else 0.0, "money"),
        ]

        start_row = 5
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])

        set_widths(ws, {"A": 24, "B": 34})

        # -------- 2) Sales Detail --------
        ws2 = wb.create_sheet("Sales Detail")
        ws2.append([
            "Receipt", "Timestamp", "Store", "Cashier", "Payment",
            "Barcode", "Product Name", "Qty", "Unit Price", "Line Total",
        ])
        bold_row(ws2, 1)

        out_row = 2
        for s in sales:
            for it in s.items:
                ws2.append([
                    s.receipt_number, s.timestamp, s.store_name or "", s.cashier_name, s.payment_method,
                    it.barcode, it.name, int(it.quantity), float(it.price), float(it.total),
                ])
                money(ws2[f"I{out_row}"])
                money(ws2[f"J{out_row}"])
                out_row += 1

        ws2.freeze_panes = "A2"
        set_widths(ws2, {
            "A": 24, "B": 24, "C": 18, "D": 18, "E": 14,
            "F": 14, "G": 30, "H": 6, "I": 12, "J": 12,
        })
        if ws2.max_row >= 2:
            add_table(ws2, "SalesDetail", 1, 1, ws2.max_row, 10)

        # -------- 3) Payment Methods --------
        ws3 = wb.create_sheet("Payment Methods")
        ws3.append(["Method", "Sales", "Amount"])
        bold_row(ws3, 1)

        counts: Counter[str] = Counter(s.payment_method for s in sales)
        amounts: defaultdict[str, float] = defaultdict(float)
        for s in sales:
            amounts[s.payment_method] += float(s.total)
        for r, method in enumerate(PAYMENT_METHODS, start=2):
            ws3.append([method, counts[method], amounts[method]])
            money(ws3[f"C{r}"])

        set_widths(ws3, {"A": 16, "B": 10, "C": 14})

        wb.save(path)

    def export_for_window(self, path: str, store_id=None, start=None, end=None) -> int:
        sales = filter_sales(self.sales.all_sales(), store_id=store_id, start=start, end=end)
        label = f"{start.isoformat(sep=' ') if start else '...'}  ->  {end.isoformat(sep=' ') if end else '...'}"
        self.export_sales_report_excel(path, sales, window_label=label)
        return len(sales)
