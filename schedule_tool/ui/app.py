"""Streamlit profit dashboard.

Calls the same core engine as the CLI. No business logic here.
"""

from __future__ import annotations

import json
import tempfile
from datetime import date
from pathlib import Path

import streamlit as st

from schedule_tool.config import load_settings
from schedule_tool.engine.proration import ProrationPolicy, profit_for_period
from schedule_tool.excel import generate_excel_report
from schedule_tool.models import Job, JobRecordError
from schedule_tool.report import generate_report_dict


def main() -> None:
    st.set_page_config(page_title="Job Profit Dashboard", layout="wide")
    st.title("Job Profit Dashboard")
    st.markdown("Prorate job profit into a reporting period.")

    settings = load_settings()
    today = date.today()

    col1, col2 = st.columns(2)

    with col1:
        st.subheader("Jobs")
        jobs_file = st.file_uploader("Upload jobs JSON", type=["json"], key="jobs")

    with col2:
        st.subheader("Period")
        period_start = st.date_input("Start", value=today.replace(day=1))
        period_end = st.date_input("End", value=today)
        policies = [p.value for p in ProrationPolicy]
        policy = st.selectbox(
            "Proration policy",
            policies,
            index=policies.index(settings.proration.policy.value),
        )

    if st.button("Calculate", type="primary", disabled=not jobs_file):
        try:
            data = json.loads(jobs_file.getvalue())
            rows = data.get("jobs", []) if isinstance(data, dict) else data
            jobs = [Job.from_record(row) for row in rows]
        except (json.JSONDecodeError, JobRecordError) as e:
            st.error(f"Invalid jobs file: {e}")
            return

        if period_end < period_start:
            st.error("Period end is before period start.")
            return

        chosen = ProrationPolicy(policy)
        result = profit_for_period(jobs, period_start, period_end, chosen)

        st.metric("Profit", f"{result.amount:,.2f}")
        if result.estimated:
            st.warning("Estimated: some jobs have no recorded costs, so profit may be overstated.")

        report = generate_report_dict(result, period_start, period_end, chosen)
        st.dataframe(report["jobs"], use_container_width=True)

        with tempfile.TemporaryDirectory() as tmpdir:
            out_path = Path(tmpdir) / "Profit_Report.xlsx"
            generate_excel_report(result, period_start, period_end, out_path)

            col_a, col_b = st.columns(2)
            with col_a:
                st.download_button(
                    "Download Excel Report",
                    data=out_path.read_bytes(),
                    file_name="Profit_Report.xlsx",
                    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                )
            with col_b:
                st.download_button(
                    "Download Report JSON",
                    data=json.dumps(report, indent=2),
                    file_name="Profit_Report.json",
                    mime="application/json",
                )


if __name__ == "__main__":
    main()
