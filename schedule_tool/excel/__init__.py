"""Excel report output."""
from schedule_tool.excel.generator import generate_excel_report

__all__ = ["generate_excel_report"]
