"""
Record Store

Owns one user's three record collections (transactions, investments,
taxes) and is the ONLY place they are mutated.

DESIGN DECISION: Collections are replaced, never edited in place.
Every mutation builds a new list, swaps it in and returns it. Callers
holding an earlier list keep a consistent snapshot, and the analytics
engine always reads the latest completed write.

Persistence is write-through and fire-and-forget: the touched collection
is written after each mutation, and a failed write is logged and audited
but never raised. The in-memory state stays authoritative for the session.

Loading is forgiving: a collection that is missing or not a list loads
as empty, and individual entries that do not validate are skipped.
"""

from typing import Any, Generic, Optional, Type, TypeVar
from uuid import UUID

import structlog
from pydantic import BaseModel, ValidationError

from financia.audit import AuditLogger
from financia.models.audit import AuditEventBuilder
from financia.models.categories import infer_transaction_type
from financia.models.records import (
    Investment,
    InvestmentDraft,
    Tax,
    TaxDraft,
    Transaction,
    TransactionDraft,
    new_record_id,
)
from financia.services.storage.interface import (
    CollectionKind,
    KeyValueStore,
    StorageError,
)


RecordT = TypeVar("RecordT", bound=BaseModel)

logger = structlog.get_logger(__name__)


class _Collection(Generic[RecordT]):
    """One persisted collection of records of a single model."""

    def __init__(
        self,
        kind: CollectionKind,
        model: Type[RecordT],
        entity_type: str,
    ):
        self.kind = kind
        self.model = model
        self.entity_type = entity_type
        self.items: list[RecordT] = []

    def index_of(self, record_id: str) -> Optional[int]:
        for idx, item in enumerate(self.items):
            if item.id == record_id:
                return idx
        return None


class RecordStore:
    """
    The per-user record store.

    Usage:
        store = RecordStore("ana@example.com", InMemoryKeyValueStore())
        store.add_transaction(TransactionDraft(...))
        store.toggle_tax_status(tax_id)

    GUARANTEES:
    - Ids are unique within each collection and never change
    - A transaction's type is fixed once stored
    - Missing ids make update/remove/toggle a no-op
    - Storage failures never propagate out of a mutation
    """

    def __init__(
        self,
        user_email: str,
        storage: KeyValueStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._user_email = user_email.strip().lower()
        self._storage = storage
        self._audit = audit_logger or AuditLogger()

        self._transactions: _Collection[Transaction] = _Collection(
            CollectionKind.TRANSACTIONS, Transaction, "transaction"
        )
        self._investments: _Collection[Investment] = _Collection(
            CollectionKind.INVESTMENTS, Investment, "investment"
        )
        self._taxes: _Collection[Tax] = _Collection(
            CollectionKind.TAXES, Tax, "tax"
        )

        for collection in self._collections:
            self._load(collection)

    @property
    def _collections(self) -> tuple[_Collection, ...]:
        return (self._transactions, self._investments, self._taxes)

    @property
    def user_email(self) -> str:
        return self._user_email

    # -------------------------------------------------------------------------
    # Read access (copies, so callers cannot mutate store state)
    # -------------------------------------------------------------------------

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions.items)

    @property
    def investments(self) -> list[Investment]:
        return list(self._investments.items)

    @property
    def taxes(self) -> list[Tax]:
        return list(self._taxes.items)

    def get_transaction(self, record_id: str) -> Optional[Transaction]:
        return self._get(self._transactions, record_id)

    def get_investment(self, record_id: str) -> Optional[Investment]:
        return self._get(self._investments, record_id)

    def get_tax(self, record_id: str) -> Optional[Tax]:
        return self._get(self._taxes, record_id)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
        via_assistant: bool = False,
    ) -> list[Transaction]:
        """
        Store a new transaction and return the updated collection.

        When the draft carries no type it is inferred from the category,
        here and only here.
        """
        data = draft.model_dump()
        if data.get("type") is None:
            data["type"] = infer_transaction_type(draft.category)
        return self._add(self._transactions, data, correlation_id, via_assistant)

    def update_transaction(self, record_id: str, **fields: Any) -> list[Transaction]:
        """Merge `fields` into a transaction. The type is never re-inferred."""
        return self._update(self._transactions, record_id, fields)

    def remove_transaction(self, record_id: str) -> list[Transaction]:
        return self._remove(self._transactions, record_id)

    # -------------------------------------------------------------------------
    # Investments
    # -------------------------------------------------------------------------

    def add_investment(
        self,
        draft: InvestmentDraft,
        correlation_id: Optional[UUID] = None,
        via_assistant: bool = False,
    ) -> list[Investment]:
        return self._add(
            self._investments, draft.model_dump(), correlation_id, via_assistant
        )

    def update_investment(self, record_id: str, **fields: Any) -> list[Investment]:
        return self._update(self._investments, record_id, fields)

    def remove_investment(self, record_id: str) -> list[Investment]:
        return self._remove(self._investments, record_id)

    # -------------------------------------------------------------------------
    # Taxes
    # -------------------------------------------------------------------------

    def add_tax(
        self,
        draft: TaxDraft,
        correlation_id: Optional[UUID] = None,
        via_assistant: bool = False,
    ) -> list[Tax]:
        return self._add(self._taxes, draft.model_dump(), correlation_id, via_assistant)

    def update_tax(self, record_id: str, **fields: Any) -> list[Tax]:
        return self._update(self._taxes, record_id, fields)

    def remove_tax(self, record_id: str) -> list[Tax]:
        return self._remove(self._taxes, record_id)

    def toggle_tax_status(self, record_id: str) -> list[Tax]:
        """Flip paid/pending on the matching tax. No-op when absent."""
        idx = self._taxes.index_of(record_id)
        if idx is None:
            return self.taxes

        tax = self._taxes.items[idx]
        toggled = tax.model_copy(update={"status": tax.status.flipped()})
        self._replace_items(self._taxes, idx, toggled)
        self._audit.log(
            AuditEventBuilder.tax_status_toggled(tax.id, toggled.status.value)
        )
        return self.taxes

    # -------------------------------------------------------------------------
    # Bulk
    # -------------------------------------------------------------------------

    def clear_all(self) -> dict[str, int]:
        """
        Empty every record collection.

        Returns:
            Number of records removed per collection
        """
        counts = {}
        for collection in self._collections:
            counts[collection.kind.name.lower()] = len(collection.items)
            collection.items = []
            self._persist(collection)
        self._audit.log(AuditEventBuilder.data_cleared(counts))
        return counts

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _get(self, collection: _Collection, record_id: str):
        idx = collection.index_of(record_id)
        return None if idx is None else collection.items[idx]

    def _add(
        self,
        collection: _Collection,
        data: dict,
        correlation_id: Optional[UUID],
        via_assistant: bool,
    ) -> list:
        data["id"] = new_record_id()
        record = collection.model.model_validate(data)

        collection.items = [record, *collection.items]
        self._persist(collection)

        self._audit.log_record_created(
            entity_type=collection.entity_type,
            entity_id=record.id,
            amount=record.amount,
            correlation_id=correlation_id,
            via_assistant=via_assistant,
        )
        self._check_amount(collection, record)
        return list(collection.items)

    def _update(self, collection: _Collection, record_id: str, fields: dict) -> list:
        """
        Raises:
            pydantic.ValidationError: If the merged record is invalid
        """
        idx = collection.index_of(record_id)
        if idx is None:
            return list(collection.items)

        current = collection.items[idx]
        merged = {**current.model_dump(), **fields, "id": current.id}
        record = collection.model.model_validate(merged)

        self._replace_items(collection, idx, record)
        self._audit.log(
            AuditEventBuilder.record_updated(
                collection.entity_type, record.id, sorted(fields)
            )
        )
        self._check_amount(collection, record)
        return list(collection.items)

    def _remove(self, collection: _Collection, record_id: str) -> list:
        if collection.index_of(record_id) is None:
            return list(collection.items)

        collection.items = [item for item in collection.items if item.id != record_id]
        self._persist(collection)
        self._audit.log(
            AuditEventBuilder.record_deleted(collection.entity_type, record_id)
        )
        return list(collection.items)

    def _replace_items(self, collection: _Collection, idx: int, record) -> None:
        items = list(collection.items)
        items[idx] = record
        collection.items = items
        self._persist(collection)

    def _check_amount(self, collection: _Collection, record) -> None:
        if record.amount < 0:
            self._audit.log(
                AuditEventBuilder.amount_anomaly(
                    collection.entity_type, record.id, record.amount
                )
            )

    def _load(self, collection: _Collection) -> None:
        try:
            raw_items = self._storage.get_collection(self._user_email, collection.kind)
        except StorageError as e:
            logger.error(
                "collection_unreadable",
                collection=collection.kind.value,
                error=str(e),
            )
            raw_items = []

        records = []
        seen_ids = set()
        errors = []
        for entry in raw_items:
            try:
                record = collection.model.model_validate(entry)
            except ValidationError as e:
                errors.append(str(e.errors()[0]["msg"]) if e.errors() else str(e))
                continue
            if record.id in seen_ids:
                errors.append(f"duplicate id {record.id}")
                continue
            seen_ids.add(record.id)
            records.append(record)

        collection.items = records
        if errors:
            self._audit.log(
                AuditEventBuilder.stored_data_discarded(
                    collection=collection.kind.name.lower(),
                    discarded=len(errors),
                    reason=errors[0],
                )
            )
        logger.debug(
            "collection_loaded",
            collection=collection.kind.value,
            count=len(records),
        )

    def _persist(self, collection: _Collection) -> None:
        try:
            self._storage.set_collection(
                self._user_email,
                collection.kind,
                [item.to_storage() for item in collection.items],
            )
        except StorageError as e:
            self._audit.log_persistence_failed(collection.kind.name.lower(), str(e))
