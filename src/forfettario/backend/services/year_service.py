"""Year records, transaction templates and their persistence."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Callable

from pydantic import ValidationError

from forfettario.backend.app.models import (
    CalculatorInputValues,
    RevenueTransaction,
    TransactionTemplate,
    YearRecord,
    format_validation_error,
)
from forfettario.backend.config.year_config import (
    available_years,
    find_year_configuration,
    load_year_configuration,
)

_LOGGER = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalise_transactions(raw: Any) -> list[RevenueTransaction]:
    """Return the valid transactions found in ``raw``.

    ``raw`` may be a list or its JSON encoding. Entries that lack a usable date
    or amount are skipped.
    """

    source = raw
    if isinstance(source, (str, bytes)):
        try:
            source = json.loads(source)
        except ValueError:
            _LOGGER.warning("Ignoring transactions payload that is not valid JSON")
            return []
    if not isinstance(source, list):
        return []

    transactions: list[RevenueTransaction] = []
    for index, item in enumerate(source):
        if isinstance(item, RevenueTransaction):
            transactions.append(item)
            continue
        if not isinstance(item, Mapping):
            _LOGGER.warning("Skipping transaction %d: expected an object", index)
            continue
        try:
            transactions.append(RevenueTransaction.model_validate(item))
        except ValidationError as exc:
            _LOGGER.warning(
                "Skipping transaction %d: %s",
                index,
                format_validation_error(exc, "Invalid transaction"),
            )
    return transactions


def merge_transactions(
    primary: Iterable[RevenueTransaction],
    fallback: Iterable[RevenueTransaction],
) -> list[RevenueTransaction]:
    """Merge two transaction lists by id, newest first; ``primary`` wins."""

    merged: dict[str, RevenueTransaction] = {}
    for transaction in primary:
        merged[transaction.id] = transaction
    for transaction in fallback:
        merged.setdefault(transaction.id, transaction)
    return sorted(merged.values(), key=lambda transaction: transaction.date, reverse=True)


def total_revenue(transactions: Iterable[RevenueTransaction]) -> float:
    return sum((transaction.amount for transaction in transactions), 0.0)


def _strip_attachments(transaction: RevenueTransaction) -> RevenueTransaction:
    if not transaction.attachments:
        return transaction
    return transaction.model_copy(update={"attachments": []})


def default_inputs(year: int) -> CalculatorInputValues:
    """Return form defaults for ``year`` taken from the year configuration.

    Years without their own configuration borrow the most recent one.
    """

    config = find_year_configuration(year)
    if config is None:
        config = load_year_configuration(max(available_years()))

    defaults = config.defaults
    return CalculatorInputValues(
        year=year,
        revenue=0,
        coeff=defaults.coeff,
        tax_rate=defaults.tax_rate,
        inps_type=defaults.inps_type,
        inps_rate=config.inps.gestione_separata.default_rate,
        inps_deductible=defaults.inps_deductible,
        apply_acconti=defaults.apply_acconti,
        split_model=defaults.split_model,
        custom_split_june=0.4,
        custom_split_november=0.6,
    )


def create_year_record(
    year: int,
    inputs: CalculatorInputValues | Mapping[str, Any],
    defaults: CalculatorInputValues | Mapping[str, Any] | None = None,
    transactions: Iterable[RevenueTransaction | Mapping[str, Any]] | None = None,
    *,
    last_updated: datetime | str | None = None,
) -> YearRecord:
    """Build a year record ready for storage.

    Attachment metadata is dropped from every transaction.
    """

    try:
        record = YearRecord.model_validate(
            {
                "year": year,
                "inputs": inputs,
                "defaults": defaults if defaults is not None else inputs,
                "transactions": [
                    _strip_attachments(transaction)
                    for transaction in normalise_transactions(list(transactions or []))
                ],
                "last_updated": last_updated or _utc_now(),
            }
        )
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc, "Invalid year record")) from exc
    return record


def record_from_payload(payload: Mapping[str, Any]) -> YearRecord:
    """Rebuild a record from its stored JSON representation."""

    return create_year_record(
        int(payload["year"]),
        payload.get("inputs") or {},
        payload.get("defaults"),
        normalise_transactions(payload.get("transactions")),
        last_updated=payload.get("lastUpdated") or payload.get("last_updated"),
    )


def apply_year_update(
    year: int,
    payload: Mapping[str, Any],
    existing: YearRecord | None = None,
) -> YearRecord:
    """Return the record produced by applying a client update to ``existing``.

    Missing sections keep their stored values; a brand-new year falls back to
    the configured defaults.
    """

    if existing is None:
        base_inputs = default_inputs(year)
        base_defaults = base_inputs
        base_transactions: list[RevenueTransaction] = []
    else:
        base_inputs = existing.inputs
        base_defaults = existing.defaults
        base_transactions = list(existing.transactions)

    inputs = payload.get("inputs")
    defaults = payload.get("defaults")
    transactions = payload.get("transactions")

    return create_year_record(
        year,
        inputs if inputs is not None else base_inputs,
        defaults if defaults is not None else base_defaults,
        normalise_transactions(transactions) if transactions is not None else base_transactions,
    )


def build_template(
    payload: Mapping[str, Any],
    *,
    template_id: str | None = None,
    created_at: datetime | str | None = None,
) -> TransactionTemplate:
    """Validate a client template payload.

    ``template_id`` and ``created_at`` pin the identity of an existing template
    so an update replaces its fields but keeps its id and creation time.
    """

    if not isinstance(payload, Mapping):
        raise ValueError("Template must be an object")

    data: dict[str, Any] = {
        "name": payload.get("name"),
        "sender": payload.get("sender"),
        "bill_to": payload.get("billTo", payload.get("bill_to")),
        "notes": payload.get("notes"),
    }
    if template_id is not None:
        data["id"] = template_id
    if created_at is not None:
        data["created_at"] = created_at
    try:
        return TransactionTemplate.model_validate(data)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc, "Invalid template")) from exc


class _TransactionOperations:
    """Transaction edits shared by the repositories.

    Subclasses provide ``get``/``save``/``_find`` and an ``RLock`` named
    ``_lock`` so an edit reads and writes the record atomically.
    """

    _lock: RLock

    def _find(self, year: int) -> YearRecord | None:  # pragma: no cover - abstract
        raise NotImplementedError

    def save(self, record: YearRecord) -> YearRecord:  # pragma: no cover - abstract
        raise NotImplementedError

    def add_transaction(
        self, year: int, transaction: RevenueTransaction | Mapping[str, Any]
    ) -> RevenueTransaction:
        """Append ``transaction`` to ``year``, creating the year when needed."""

        new_transaction = _strip_attachments(_coerce_transaction(transaction))
        with self._lock:
            record = self._find(year)
            if record is None:
                record = create_year_record(year, default_inputs(year))
            if any(existing.id == new_transaction.id for existing in record.transactions):
                raise ValueError(f"Transaction {new_transaction.id} already exists")
            self.save(
                record.model_copy(
                    update={
                        "transactions": merge_transactions(
                            [new_transaction], record.transactions
                        )
                    }
                )
            )
        return new_transaction

    def update_transaction(
        self, year: int, transaction: RevenueTransaction | Mapping[str, Any]
    ) -> RevenueTransaction:
        """Replace the stored transaction sharing ``transaction.id``."""

        updated = _strip_attachments(_coerce_transaction(transaction))
        with self._lock:
            record = self._require(year)
            if not any(existing.id == updated.id for existing in record.transactions):
                raise KeyError(updated.id)
            self.save(
                record.model_copy(
                    update={"transactions": merge_transactions([updated], record.transactions)}
                )
            )
        return updated

    def delete_transaction(self, year: int, transaction_id: str) -> None:
        with self._lock:
            record = self._require(year)
            remaining = [
                transaction
                for transaction in record.transactions
                if transaction.id != transaction_id
            ]
            if len(remaining) == len(record.transactions):
                raise KeyError(transaction_id)
            self.save(record.model_copy(update={"transactions": remaining}))

    def _require(self, year: int) -> YearRecord:
        record = self._find(year)
        if record is None:
            raise KeyError(year)
        return record


def _coerce_transaction(
    transaction: RevenueTransaction | Mapping[str, Any],
) -> RevenueTransaction:
    if isinstance(transaction, RevenueTransaction):
        return transaction
    if not isinstance(transaction, Mapping):
        raise ValueError("Transaction must be an object")
    try:
        return RevenueTransaction.model_validate(transaction)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc, "Invalid transaction")) from exc


class InMemoryYearRepository(_TransactionOperations):
    """Thread-safe in-memory storage for year records."""

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _utc_now
        self._records: dict[int, YearRecord] = {}
        self._templates: dict[str, TransactionTemplate] = {}
        self._lock = RLock()

    def list_years(self) -> list[int]:
        with self._lock:
            return sorted(self._records, reverse=True)

    def _find(self, year: int) -> YearRecord | None:
        with self._lock:
            return self._records.get(year)

    def get(self, year: int) -> YearRecord:
        with self._lock:
            return self._require(year)

    def save(self, record: YearRecord) -> YearRecord:
        stamped = record.model_copy(update={"last_updated": self._clock()})
        with self._lock:
            self._records[stamped.year] = stamped
        return stamped

    def delete(self, year: int) -> None:
        with self._lock:
            if self._records.pop(year, None) is None:
                raise KeyError(year)

    def list_templates(self) -> list[TransactionTemplate]:
        """Return stored templates, newest first."""

        with self._lock:
            templates = list(self._templates.values())
        # Insertion order breaks ties between templates created in the same instant.
        return [
            template
            for _, template in sorted(
                enumerate(templates),
                key=lambda item: (item[1].created_at, item[0]),
                reverse=True,
            )
        ]

    def get_template(self, template_id: str) -> TransactionTemplate:
        with self._lock:
            return self._templates[template_id]

    def create_template(self, payload: Mapping[str, Any]) -> TransactionTemplate:
        template = build_template(payload, created_at=self._clock())
        with self._lock:
            self._templates[template.id] = template
        return template

    def update_template(
        self, template_id: str, payload: Mapping[str, Any]
    ) -> TransactionTemplate:
        """Replace every editable field of a stored template."""

        with self._lock:
            existing = self.get_template(template_id)
            template = build_template(
                payload, template_id=existing.id, created_at=existing.created_at
            )
            self._templates[template_id] = template
        return template

    def delete_template(self, template_id: str) -> None:
        with self._lock:
            if self._templates.pop(template_id, None) is None:
                raise KeyError(template_id)


class SQLiteYearRepository(_TransactionOperations):
    """SQLite-backed repository storing one JSON document per year."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._path = str(path)
        self._clock = clock or _utc_now
        self._lock = RLock()
        self._initialise()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._path, check_same_thread=False)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        return connection

    def _initialise(self) -> None:
        with self._lock:
            connection = self._connect()
            try:
                with connection:
                    connection.execute(
                        """
                        CREATE TABLE IF NOT EXISTS years (
                            year INTEGER PRIMARY KEY,
                            payload TEXT NOT NULL,
                            last_updated TEXT NOT NULL
                        )
                        """
                    )
                    connection.execute(
                        """
                        CREATE TABLE IF NOT EXISTS templates (
                            id TEXT PRIMARY KEY,
                            name TEXT NOT NULL,
                            sender TEXT,
                            bill_to TEXT,
                            notes TEXT,
                            created_at TEXT NOT NULL
                        )
                        """
                    )
            finally:
                connection.close()

    @staticmethod
    def _decode_record(row: sqlite3.Row) -> YearRecord | None:
        try:
            payload = json.loads(row["payload"])
            return record_from_payload(payload)
        except (ValueError, KeyError, TypeError) as exc:
            _LOGGER.warning("Ignoring unreadable record for year %s: %s", row["year"], exc)
            return None

    def list_years(self) -> list[int]:
        with self._lock:
            connection = self._connect()
            try:
                rows = connection.execute("SELECT year FROM years ORDER BY year DESC").fetchall()
            finally:
                connection.close()
        return [int(row["year"]) for row in rows]

    def _find(self, year: int) -> YearRecord | None:
        with self._lock:
            connection = self._connect()
            try:
                row = connection.execute(
                    "SELECT year, payload FROM years WHERE year = ?",
                    (year,),
                ).fetchone()
            finally:
                connection.close()
        if row is None:
            return None
        return self._decode_record(row)

    def get(self, year: int) -> YearRecord:
        return self._require(year)

    def save(self, record: YearRecord) -> YearRecord:
        stamped = record.model_copy(update={"last_updated": self._clock()})
        payload_json = json.dumps(stamped.as_wire(), ensure_ascii=False)
        with self._lock:
            connection = self._connect()
            try:
                with connection:
                    connection.execute(
                        "INSERT INTO years (year, payload, last_updated) VALUES (?, ?, ?)"
                        " ON CONFLICT(year) DO UPDATE SET"
                        " payload = excluded.payload, last_updated = excluded.last_updated",
                        (stamped.year, payload_json, stamped.last_updated.isoformat()),
                    )
            finally:
                connection.close()
        return stamped

    def delete(self, year: int) -> None:
        with self._lock:
            connection = self._connect()
            try:
                with connection:
                    cursor = connection.execute("DELETE FROM years WHERE year = ?", (year,))
            finally:
                connection.close()
        if cursor.rowcount == 0:
            raise KeyError(year)

    @staticmethod
    def _decode_template(row: sqlite3.Row) -> TransactionTemplate:
        return TransactionTemplate(
            id=row["id"],
            name=row["name"],
            sender=row["sender"],
            bill_to=row["bill_to"],
            notes=row["notes"],
            created_at=row["created_at"],
        )

    def list_templates(self) -> list[TransactionTemplate]:
        """Return stored templates, newest first."""

        with self._lock:
            connection = self._connect()
            try:
                rows = connection.execute(
                    "SELECT id, name, sender, bill_to, notes, created_at FROM templates"
                    " ORDER BY created_at DESC, rowid DESC"
                ).fetchall()
            finally:
                connection.close()
        return [self._decode_template(row) for row in rows]

    def get_template(self, template_id: str) -> TransactionTemplate:
        with self._lock:
            connection = self._connect()
            try:
                row = connection.execute(
                    "SELECT id, name, sender, bill_to, notes, created_at FROM templates"
                    " WHERE id = ?",
                    (template_id,),
                ).fetchone()
            finally:
                connection.close()
        if row is None:
            raise KeyError(template_id)
        return self._decode_template(row)

    def create_template(self, payload: Mapping[str, Any]) -> TransactionTemplate:
        template = build_template(payload, created_at=self._clock())
        with self._lock:
            connection = self._connect()
            try:
                with connection:
                    connection.execute(
                        "INSERT INTO templates (id, name, sender, bill_to, notes, created_at)"
                        " VALUES (?, ?, ?, ?, ?, ?)",
                        (
                            template.id,
                            template.name,
                            template.sender,
                            template.bill_to,
                            template.notes,
                            template.created_at.isoformat(),
                        ),
                    )
            finally:
                connection.close()
        return template

    def update_template(
        self, template_id: str, payload: Mapping[str, Any]
    ) -> TransactionTemplate:
        """Replace every editable field of a stored template."""

        with self._lock:
            existing = self.get_template(template_id)
            template = build_template(
                payload, template_id=existing.id, created_at=existing.created_at
            )
            connection = self._connect()
            try:
                with connection:
                    connection.execute(
                        "UPDATE templates SET name = ?, sender = ?, bill_to = ?, notes = ?"
                        " WHERE id = ?",
                        (
                            template.name,
                            template.sender,
                            template.bill_to,
                            template.notes,
                            template_id,
                        ),
                    )
            finally:
                connection.close()
        return template

    def delete_template(self, template_id: str) -> None:
        with self._lock:
            connection = self._connect()
            try:
                with connection:
                    cursor = connection.execute(
                        "DELETE FROM templates WHERE id = ?", (template_id,)
                    )
            finally:
                connection.close()
        if cursor.rowcount == 0:
            raise KeyError(template_id)


__all__ = [
    "InMemoryYearRepository",
    "SQLiteYearRepository",
    "apply_year_update",
    "build_template",
    "create_year_record",
    "default_inputs",
    "merge_transactions",
    "normalise_transactions",
    "record_from_payload",
    "total_revenue",
]
