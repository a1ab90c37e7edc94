"""
Shared fixtures.

No test talks to the network: the assistant is replaced by
FakeAssistant, and storage is in memory unless a test needs files.
"""

import asyncio
from datetime import date
from typing import Optional

import pytest

from financia.agents import AssistantError, AssistantReply
from financia.audit import AuditLogger
from financia.models.actions import RawActionCall
from financia.models.records import (
    PaymentMethod,
    Transaction,
    TransactionType,
)
from financia.records import RecordStore
from financia.services.storage import InMemoryKeyValueStore


USER_EMAIL = "ana@example.com"


class FakeAssistant:
    """
    Stands in for FinancialAssistant.

    Replies are served in order; once exhausted it answers "Ok".
    Set `gate` to an asyncio.Event to hold send_message until it is set.
    """

    def __init__(
        self,
        replies: Optional[list] = None,
        ack_text: str = "Anotado!",
        fail: bool = False,
        fail_ack: bool = False,
        fail_start: bool = False,
    ):
        self.replies = list(replies or [])
        self.ack_text = ack_text
        self.fail = fail
        self.fail_ack = fail_ack
        self.fail_start = fail_start
        self.gate: Optional[asyncio.Event] = None
        self.started = 0
        self.resets = 0
        self.sent: list[str] = []
        self.acknowledged: list[tuple[str, str]] = []
        self.ack_batches = 0
        self.snapshot: Optional[dict] = None
        self._open = False

    @property
    def is_started(self) -> bool:
        return self._open

    def start_conversation(self, transactions, investments, taxes, today=None):
        if self.fail_start:
            raise AssistantError("invalid api key")
        self._open = True
        self.started += 1
        self.snapshot = {
            "transactions": len(transactions),
            "investments": len(investments),
            "taxes": len(taxes),
            "today": today,
        }

    def reset(self):
        self._open = False
        self.resets += 1

    async def send_message(self, text: str) -> AssistantReply:
        self.sent.append(text)
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        if self.fail:
            raise AssistantError("network down")
        if self.replies:
            return self.replies.pop(0)
        return AssistantReply(text="Ok")

    async def acknowledge(self, confirmations: list[tuple[RawActionCall, str]]) -> str:
        self.ack_batches += 1
        self.acknowledged.extend((call.name, feedback) for call, feedback in confirmations)
        if self.fail_ack:
            raise AssistantError("timeout")
        return self.ack_text


def make_transaction(
    amount: float,
    day: date,
    type: TransactionType = TransactionType.EXPENSE,
    category: str = "food",
    payment_method: PaymentMethod = PaymentMethod.PIX,
    description: str = "Teste",
) -> Transaction:
    return Transaction(
        description=description,
        amount=amount,
        date=day,
        category=category,
        type=type,
        payment_method=payment_method,
    )


@pytest.fixture
def storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_logger(storage) -> AuditLogger:
    return AuditLogger(storage=storage, user_email=USER_EMAIL)


@pytest.fixture
def store(storage, audit_logger) -> RecordStore:
    return RecordStore(USER_EMAIL, storage, audit_logger)


@pytest.fixture
def january_transactions() -> list[Transaction]:
    """A month with income, credit and pix spending across categories."""
    return [
        make_transaction(5000, date(2024, 1, 5), TransactionType.INCOME, "salary"),
        make_transaction(1500, date(2024, 1, 6), category="rent"),
        make_transaction(300, date(2024, 1, 10), category="food",
                         payment_method=PaymentMethod.CREDIT),
        make_transaction(200, date(2024, 1, 10), category="food"),
        make_transaction(800, date(2024, 1, 20), TransactionType.INCOME, "freelance"),
        make_transaction(120, date(2024, 1, 28), category="transport",
                         payment_method=PaymentMethod.CREDIT),
        make_transaction(90, date(2024, 2, 2), category="entertainment"),
    ]
