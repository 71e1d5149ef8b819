from __future__ import annotations

import logging

from openpyxl import load_workbook

from possuite.domain.errors import ValidationError

log = logging.getLogger(__name__)


class ExcelService:
    def __init__(self, catalog_service, stock_service):
        self.catalog = catalog_service
        self.stock = stock_service

    def import_products_excel(self, path: str, performed_by: str = "EXCEL_IMPORT") -> tuple[int, int]:
        """
        Excel represents RESTOCK (delta to add), not absolute stock.
        Headers:
          barcode | name | category | price | stock
        """
        wb = load_workbook(path)
        ws = wb.active

        headers = {}
        for col in range(1, ws.max_column + 1):
            v = ws.cell(row=1, column=col).value
            if isinstance(v, str):
                headers[v.strip().lower()] = col

        required = ["barcode", "name", "category", "price", "stock"]
        for r in required:
            if r not in headers:
                raise ValidationError(f"Missing column header: {r}")

        ok = 0
        skipped = 0

        for row in range(2, ws.max_row + 1):
            barcode = ws.cell(row=row, column=headers["barcode"]).value
            name = ws.cell(row=row, column=headers["name"]).value
            category = ws.cell(row=row, column=headers["category"]).value or "Other"
            price = ws.cell(row=row, column=headers["price"]).value
            restock_qty = ws.cell(row=row, column=headers["stock"]).value

            if barcode is None or not name or price is None or restock_qty is None:
                skipped += 1
                continue

            try:
                barcode = str(barcode).strip()
                name = str(name).strip()
                price = float(price)
                restock_qty = int(float(restock_qty))
            except (TypeError, ValueError) as e:
                log.warning("Excel import skipped row %s: %s", row, e)
                skipped += 1
                continue

            if restock_qty < 0:
                skipped += 1
                continue

            if self.catalog.find_by_barcode(barcode):
                # Stock changes only through restock so they are logged
                result = self.catalog.update(barcode, name=name, price=price, category=str(category).strip())
            else:
                result = self.catalog.add(barcode, name, price, 0, str(category).strip())
            if not result.success:
                log.warning("Excel import skipped row %s: %s", row, result.message)
                skipped += 1
                continue

            if restock_qty > 0:
                restocked = self.stock.restock(barcode, restock_qty, performed_by)
                if not restocked.success:
                    log.warning("Excel import restock failed row %s: %s", row, restocked.message)
                    skipped += 1
                    continue

            ok += 1

        log.info("excel_import_finished path=%s ok=%s skipped=%s", path, ok, skipped)
        return ok, skipped
