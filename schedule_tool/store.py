"""Persistence contract for job orchestration.

The hosted database, file storage and edge functions sit behind `JobStore`.
`InMemoryJobStore` keeps everything in dicts for tests and local runs.
"""

from __future__ import annotations

import itertools
from typing import Any, Optional, Protocol


class StoreError(Exception):
    """Raised by a store when a backend call fails."""


class JobStore(Protocol):
    def get_quote(self, quote_id: str) -> Optional[dict[str, Any]]: ...

    def update_quote(self, quote_id: str, patch: dict[str, Any]) -> None: ...

    def unlink_quotes_for_job(self, job_id: str) -> None: ...

    def get_job(self, job_id: str) -> Optional[dict[str, Any]]: ...

    def insert_job(self, row: dict[str, Any]) -> dict[str, Any]: ...

    def update_job(self, job_id: str, patch: dict[str, Any]) -> dict[str, Any]: ...

    def delete_job(self, job_id: str) -> None: ...

    def copy_quote_pdf(self, job_id: str, quote_id: str) -> None: ...

    def insert_document(self, row: dict[str, Any]) -> dict[str, Any]: ...

    def insert_expenses(self, rows: list[dict[str, Any]]) -> int: ...

    def list_expenses(self, job_id: str) -> list[dict[str, Any]]: ...


class InMemoryJobStore:
    """Dict-backed JobStore."""

    def __init__(self, quotes: Optional[list[dict[str, Any]]] = None):
        self.quotes: dict[str, dict[str, Any]] = {str(q["id"]): dict(q) for q in quotes or []}
        self.jobs: dict[str, dict[str, Any]] = {}
        self.documents: list[dict[str, Any]] = []
        self.expenses: list[dict[str, Any]] = []
        self._ids = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def get_quote(self, quote_id: str) -> Optional[dict[str, Any]]:
        quote = self.quotes.get(str(quote_id))
        return dict(quote) if quote else None

    def update_quote(self, quote_id: str, patch: dict[str, Any]) -> None:
        if str(quote_id) not in self.quotes:
            raise StoreError(f"quote {quote_id} not found")
        self.quotes[str(quote_id)].update(patch)

    def unlink_quotes_for_job(self, job_id: str) -> None:
        for quote in self.quotes.values():
            if quote.get("job_id") == job_id:
                quote["job_id"] = None

    def get_job(self, job_id: str) -> Optional[dict[str, Any]]:
        job = self.jobs.get(str(job_id))
        return dict(job) if job else None

    def insert_job(self, row: dict[str, Any]) -> dict[str, Any]:
        job = dict(row, id=self._next_id("job"))
        self.jobs[job["id"]] = job
        return dict(job)

    def update_job(self, job_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        if str(job_id) not in self.jobs:
            raise StoreError(f"job {job_id} not found")
        self.jobs[str(job_id)].update(patch)
        return dict(self.jobs[str(job_id)])

    def delete_job(self, job_id: str) -> None:
        self.jobs.pop(str(job_id), None)
        self.documents = [d for d in self.documents if d.get("job_id") != job_id]
        self.expenses = [e for e in self.expenses if e.get("job_id") != job_id]

    def copy_quote_pdf(self, job_id: str, quote_id: str) -> None:
        quote = self.quotes.get(str(quote_id)) or {}
        if not quote.get("pdf_path"):
            raise StoreError("quote has no stored PDF to copy")
        self.documents.append({
            "id": self._next_id("doc"),
            "job_id": job_id,
            "quote_id": quote_id,
            "kind": "quote",
            "url": quote["pdf_path"],
        })

    def insert_document(self, row: dict[str, Any]) -> dict[str, Any]:
        doc = dict(row, id=self._next_id("doc"))
        self.documents.append(doc)
        return dict(doc)

    def insert_expenses(self, rows: list[dict[str, Any]]) -> int:
        for row in rows:
            self.expenses.append(dict(row, id=self._next_id("exp")))
        return len(rows)

    def list_expenses(self, job_id: str) -> list[dict[str, Any]]:
        rows = [dict(e) for e in self.expenses if e.get("job_id") == job_id]
        return sorted(rows, key=lambda e: e.get("date") or "", reverse=True)
