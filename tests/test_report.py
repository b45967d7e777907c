"""Tests for JSON and Excel profit reports."""

import json
import pytest
import tempfile
from datetime import date, datetime
from pathlib import Path

import openpyxl

from schedule_tool.engine.proration import ProrationPolicy, profit_for_period
from schedule_tool.excel.generator import DATA_START_ROW, HEADER_ROW, generate_excel_report
from schedule_tool.models import Job
from schedule_tool.report import generate_report, generate_report_dict


def _jobs() -> list[Job]:
    return [
        Job.from_record({
            "id": "a", "title": "Bathroom", "start_date": "2024-01-01", "end_date": "2024-01-05",
            "total": 500, "cost": 0,
        }),
        Job.from_record({
            "id": "b", "title": "Porch", "start_date": "2024-01-02", "end_date": "2024-01-03",
            "total": 300, "expenses": [{"amount": 100}],
        }),
    ]


@pytest.fixture
def result():
    return profit_for_period(_jobs(), date(2024, 1, 1), date(2024, 1, 2))


class TestReportDict:
    def test_summary(self, result):
        report = generate_report_dict(result, date(2024, 1, 1), date(2024, 1, 2))
        assert report["period"] == {"start": "2024-01-01", "end": "2024-01-02"}
        assert report["policy"] == "linear"
        # a: 2 of 5 days of 500; b: 1 of 2 days of 200
        assert report["summary"]["amount"] == 300.0
        assert report["summary"]["estimated"] is True
        assert report["summary"]["contributing_jobs"] == 2
        assert report["summary"]["estimated_jobs"] == 1

    def test_job_rows(self, result):
        report = generate_report_dict(result, "2024-01-01", "2024-01-02")
        a, b = report["jobs"]
        assert a["overlap_days"] == 2
        assert a["effective_days"] == 5
        assert a["contribution"] == 200.0
        assert a["cost_source"] == "manual"
        assert b["cost_source"] == "expenses"
        assert b["daily_rate"] == 100.0

    def test_dict_is_plain_json(self, result):
        report = generate_report_dict(result, "2024-01-01", "2024-01-02")
        assert json.loads(json.dumps(report)) == report
        assert isinstance(report["jobs"][0]["contribution"], float)

    def test_write_json(self, result):
        with tempfile.TemporaryDirectory() as tmpdir:
            out = generate_report(
                result, "2024-01-01", "2024-01-02", Path(tmpdir) / "Profit.json",
                ProrationPolicy.LINEAR,
            )
            data = json.loads(out.read_text(encoding="utf-8"))
            assert data["summary"]["amount"] == 300.0


class TestExcelReport:
    def test_rows_and_total(self, result):
        with tempfile.TemporaryDirectory() as tmpdir:
            out = generate_excel_report(result, "2024-01-01", "2024-01-02", Path(tmpdir) / "Profit.xlsx")
            wb = openpyxl.load_workbook(str(out))
            ws = wb.active

            assert ws.title == "Profit"
            assert ws.cell(row=HEADER_ROW, column=1).value == "Job"
            assert ws.cell(row=DATA_START_ROW, column=1).value == "Bathroom"
            start = ws.cell(row=DATA_START_ROW, column=2).value
            if isinstance(start, datetime):
                start = start.date()
            assert start == date(2024, 1, 1)
            assert ws.cell(row=DATA_START_ROW, column=11).value == 200.0
            assert ws.cell(row=DATA_START_ROW + 1, column=1).value == "Porch"

            total_row = DATA_START_ROW + 2
            assert ws.cell(row=total_row, column=1).value == "TOTAL"
            assert ws.cell(row=total_row, column=11).value == 300.0
            assert ws.cell(row=total_row, column=12).value == "Estimated"

    def test_empty_result(self):
        empty = profit_for_period([], "2024-01-01", "2024-01-31")
        with tempfile.TemporaryDirectory() as tmpdir:
            out = generate_excel_report(empty, "2024-01-01", "2024-01-31", Path(tmpdir) / "sub" / "Empty.xlsx")
            ws = openpyxl.load_workbook(str(out)).active
            assert ws.cell(row=DATA_START_ROW, column=1).value == "TOTAL"
            assert ws.cell(row=DATA_START_ROW, column=11).value == 0.0
