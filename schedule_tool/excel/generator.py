"""Excel export of a prorated profit result.

All values are pre-computed in Python; the workbook carries no formulas.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from schedule_tool.engine.dates import DateLike, to_local_midnight
from schedule_tool.models import ProfitResult

CENT = Decimal("0.01")

SHEET_TITLE = "Profit"
TITLE_ROW = 1
PERIOD_ROW = 2
HEADER_ROW = 4
DATA_START_ROW = 5

COLUMNS = [
    ("Job", 32),
    ("Start", 14),
    ("End", 14),
    ("Weekends", 11),
    ("Total", 14),
    ("Cost", 14),
    ("Profit", 14),
    ("Job Days", 10),
    ("Days In Period", 15),
    ("Daily Rate", 14),
    ("Contribution", 15),
    ("Estimated Cost", 15),
]

THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin'),
)

HEADER_FONT = Font(name='Calibri', size=11, bold=True)
DATA_FONT = Font(name='Calibri', size=11)
TITLE_FONT = Font(name='Calibri', size=12, bold=True)
HEADER_FILL = PatternFill(start_color='D9E1F2', end_color='D9E1F2', fill_type='solid')
CENTER_ALIGN = Alignment(horizontal='center', vertical='center')
MONEY_FORMAT = '#,##0.00'
DATE_FORMAT = 'yyyy-mm-dd'

MONEY_COLUMNS = {5, 6, 7, 10, 11}
DATE_COLUMNS = {2, 3}


def _money(value: Decimal) -> float:
    return float(value.quantize(CENT, ROUND_HALF_UP))


def generate_excel_report(
    result: ProfitResult,
    period_start: DateLike,
    period_end: DateLike,
    output_path: str | Path,
) -> Path:
    """Write one row per contributing job plus a totals row."""
    output_path = Path(output_path)
    start = to_local_midnight(period_start)
    end = to_local_midnight(period_end)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    last_col = len(COLUMNS)
    ws.cell(row=TITLE_ROW, column=1, value="Prorated Profit Report").font = TITLE_FONT
    ws.merge_cells(start_row=TITLE_ROW, start_column=1, end_row=TITLE_ROW, end_column=last_col)
    ws.cell(row=PERIOD_ROW, column=1, value=f"Period: {start.isoformat()} to {end.isoformat()}").font = DATA_FONT

    for col, (header, width) in enumerate(COLUMNS, start=1):
        cell = ws.cell(row=HEADER_ROW, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = THIN_BORDER
        cell.alignment = CENTER_ALIGN
        ws.column_dimensions[get_column_letter(col)].width = width

    row = DATA_START_ROW
    for c in result.contributions:
        job = c.job
        values = [
            job.title or job.id or "Job",
            job.start_date,
            job.end_date,
            "Yes" if job.include_weekends else "No",
            _money(job.total),
            _money(job.effective_cost),
            _money(job.profit),
            c.effective_days,
            c.overlap_days,
            _money(c.daily_rate),
            _money(c.amount),
            "Yes" if job.cost_is_estimated else "No",
        ]
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.font = DATA_FONT
            cell.border = THIN_BORDER
            if col in MONEY_COLUMNS:
                cell.number_format = MONEY_FORMAT
            elif col in DATE_COLUMNS:
                cell.number_format = DATE_FORMAT
        row += 1

    total_row = row
    ws.cell(row=total_row, column=1, value="TOTAL").font = HEADER_FONT
    total_cell = ws.cell(row=total_row, column=last_col - 1, value=float(result.amount))
    total_cell.font = HEADER_FONT
    total_cell.number_format = MONEY_FORMAT
    total_cell.border = THIN_BORDER
    ws.cell(
        row=total_row, column=last_col,
        value="Estimated" if result.estimated else "",
    ).font = HEADER_FONT

    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(output_path))
    return output_path
