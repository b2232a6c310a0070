"""Budget ledger export (CSV / Excel).

兩種格式內容相同:
- 專案表頭 (名稱、客戶、日期、地址)
- 欄位標題
- 各類別品項 + 小計
- 總計、稅額、含稅總計、預算、差額
Excel 另加條款 footer.
"""

import csv
import io
import logging
from decimal import Decimal
from io import BytesIO
from typing import List, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ..models.document import Document
from ..models.totals import Totals
from ..utils import ErrorCode, raise_error
from .money import line_total
from .totals_engine import compute_totals

logger = logging.getLogger(__name__)

# (header, excel width)
COLUMNS = [
    ("Category", 28),
    ("Vendor", 20),
    ("Description", 36),
    ("Dimensions", 18),
    ("Qty", 8),
    ("Unit Price", 14),
    ("Total", 14),
    ("Lead Time", 14),
    ("Status", 12),
    ("Notes", 30),
]

# Label column for subtotal/total rows ("Unit Price")
LABEL_COLUMN = 6

CURRENCY_FORMAT = '"$"#,##0.00'


def _number(value: Union[float, Decimal]) -> Union[int, float]:
    """12.0 → 12, Decimal("1932.125") → 1932.125."""
    number = float(value)
    return int(number) if number.is_integer() else number


def _summary_rows(document: Document, totals: Totals) -> List[tuple]:
    return [
        ("Grand Total", totals.grand_total),
        ("Est. Tax", totals.tax),
        ("Total w/ Tax", totals.total_with_tax),
        ("Budget Allowance", Decimal(str(document.project_info.allowance))),
        ("Variance", totals.variance),
    ]


def export_csv(document: Document) -> bytes:
    """
    Render the ledger as CSV.

    Args:
        document: Document to export

    Returns:
        UTF-8 CSV with a BOM so Excel detects the encoding
    """
    totals = compute_totals(document.project_info, document.categories)
    info = document.project_info
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(["Project Budget Export"])
    writer.writerow(["Project Name", info.name])
    writer.writerow(["Client", info.client])
    writer.writerow(["Date", info.date])
    writer.writerow(["Address", info.address])
    writer.writerow([])

    writer.writerow([header for header, _ in COLUMNS])
    padding = [""] * (LABEL_COLUMN - 1)

    for category in document.categories:
        for item in category.items:
            writer.writerow([
                category.title,
                item.manufacturer,
                item.description,
                item.dimensions,
                _number(item.quantity),
                _number(item.unit_price),
                _number(line_total(item.quantity, item.unit_price)),
                item.lead_time,
                item.status,
                item.notes,
            ])
        subtotal = totals.category_totals.get(category.id, Decimal(0))
        writer.writerow([*padding, "Subtotal", _number(subtotal)])
        writer.writerow([])

    writer.writerow([])
    for label, amount in _summary_rows(document, totals):
        writer.writerow([*padding, label, _number(amount)])

    logger.info(f"CSV export generated: {len(document.categories)} categories")
    return buffer.getvalue().encode("utf-8-sig")


class LedgerExcelExporter:
    """Writes the ledger to an .xlsx workbook."""

    def __init__(self):
        self.header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        self.subtotal_fill = PatternFill(start_color="DCE6F1", end_color="DCE6F1", fill_type="solid")
        self.thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )

    def create_workbook(self, document: Document) -> bytes:
        """
        Create the ledger workbook.

        Returns:
            .xlsx file content

        Raises:
            APIError: If generation fails
        """
        try:
            totals = compute_totals(document.project_info, document.categories)

            wb = Workbook()
            ws = wb.active
            ws.title = "Budget"

            row = self._write_project_header(ws, document)
            row = self._write_column_headers(ws, row + 1)
            row = self._add_items_to_sheet(ws, document, totals, row + 1)
            row = self._write_summary(ws, document, totals, row + 1)
            self._write_terms_footer(ws, document.project_info.terms, row + 2)

            output = BytesIO()
            wb.save(output)
            logger.info(f"Excel export generated: {len(document.categories)} categories")
            return output.getvalue()

        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Excel generation failed: {e}")
            raise_error(
                ErrorCode.EXPORT_FAILED,
                f"Excel export failed: {str(e)}",
                status_code=500,
            )

    def _write_project_header(self, ws, document: Document) -> int:
        """Rows 1-5: title, project and company block. Returns the next free row."""
        info = document.project_info
        ws.cell(row=1, column=1, value="Project Budget Export").font = Font(bold=True, size=16)
        ws.cell(row=1, column=8, value=info.company_name).font = Font(bold=True)

        left = [
            ("Project Name", info.name),
            ("Client", info.client),
            ("Date", info.date),
            ("Address", info.address),
        ]
        right = [info.company_address, info.company_phone, info.company_email, info.company_website]
        for offset, ((label, value), company_line) in enumerate(zip(left, right)):
            ws.cell(row=2 + offset, column=1, value=label).font = Font(bold=True)
            ws.cell(row=2 + offset, column=2, value=value)
            ws.cell(row=2 + offset, column=8, value=company_line)
        return 2 + len(left)

    def _write_column_headers(self, ws, row: int) -> int:
        header_font = Font(bold=True, color="FFFFFF", size=11)
        header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

        for col_num, (header_text, excel_width) in enumerate(COLUMNS, 1):
            cell = ws.cell(row=row, column=col_num, value=header_text)
            cell.fill = self.header_fill
            cell.font = header_font
            cell.alignment = header_alignment
            cell.border = self.thin_border
            ws.column_dimensions[get_column_letter(col_num)].width = excel_width

        ws.row_dimensions[row].height = 25
        ws.freeze_panes = ws.cell(row=row + 1, column=1)
        return row

    def _add_items_to_sheet(self, ws, document: Document, totals: Totals, row: int) -> int:
        """Items and per-category subtotals. Returns last row used."""
        left_alignment = Alignment(horizontal="left", vertical="top", wrap_text=True)
        center_alignment = Alignment(horizontal="center", vertical="top")

        for category in document.categories:
            for item in category.items:
                values = [
                    category.title,
                    item.manufacturer,
                    item.description,
                    item.dimensions,
                    _number(item.quantity),
                    _number(item.unit_price),
                    f"=E{row}*F{row}",
                    item.lead_time,
                    item.status,
                    item.notes,
                ]
                for col_num, value in enumerate(values, 1):
                    cell = ws.cell(row=row, column=col_num, value=value)
                    cell.border = self.thin_border
                    cell.alignment = center_alignment if col_num in (5, 9) else left_alignment
                    if col_num in (6, 7):
                        cell.number_format = CURRENCY_FORMAT
                row += 1

            # 小計
            subtotal = totals.category_totals.get(category.id, Decimal(0))
            label = ws.cell(row=row, column=LABEL_COLUMN, value="Subtotal")
            label.font = Font(bold=True)
            cell = ws.cell(row=row, column=LABEL_COLUMN + 1, value=_number(subtotal))
            cell.number_format = CURRENCY_FORMAT
            cell.font = Font(bold=True)
            for col_num in range(1, len(COLUMNS) + 1):
                ws.cell(row=row, column=col_num).fill = self.subtotal_fill
            row += 2

        return row - 1

    def _write_summary(self, ws, document: Document, totals: Totals, row: int) -> int:
        for label, amount in _summary_rows(document, totals):
            ws.cell(row=row, column=LABEL_COLUMN, value=label).font = Font(bold=True)
            cell = ws.cell(row=row, column=LABEL_COLUMN + 1, value=_number(amount))
            cell.number_format = CURRENCY_FORMAT
            if label == "Variance" and totals.is_over_budget:
                cell.font = Font(bold=True, color="C00000")
            row += 1
        return row - 1

    def _write_terms_footer(self, ws, terms: List[str], start_row: int) -> None:
        ws.cell(row=start_row, column=1, value="Terms & Conditions").font = Font(bold=True)
        for i, term in enumerate(terms, 1):
            ws.cell(row=start_row + i, column=1, value=term)


def export_xlsx(document: Document) -> bytes:
    return LedgerExcelExporter().create_workbook(document)
