"""
Main Orchestrator for Financ.ia

This module ties together all the components and defines the
end-to-end flows for:
1. Chat (message -> assistant -> validate actions -> record store -> confirm)
2. Accounts (register -> sign in -> resume session)
3. The signed-in session (records, analytics, chat for one user)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The assistant only ever CREATES records, through the store's add_*
- A turn with any malformed action applies nothing at all
- At most one chat turn is in flight per conversation
- Every step is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

import asyncio
import datetime
from typing import Callable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from financia.agents import AssistantError, FinancialAssistant
from financia.analytics import AnalyticsEngine
from financia.audit import AuditLogger, create_correlation_id
from financia.config import Settings, StorageSettings, get_settings
from financia.models.actions import (
    RawActionCall,
    RecordInvestmentAction,
    RecordTaxAction,
    RecordTransactionAction,
)
from financia.models.analytics import DashboardSummary, DateRange
from financia.models.audit import AuditEventBuilder
from financia.models.chat import ChatMessage, ChatRole
from financia.records import RecordStore
from financia.services.auth import User, UserAlreadyExistsError, UserDirectory
from financia.services.storage import (
    CollectionKind,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    StorageError,
)
from financia.validation import ActionValidator


logger = structlog.get_logger(__name__)

APOLOGY = "Tive um problema ao processar seu pedido."

# Appended when the assistant confirms an action with an empty reply
FALLBACK_REPLIES = {
    "record_transaction": "Gasto registrado!",
    "record_investment": "Aporte registrado!",
    "record_tax": "Tributo registrado!",
}

CURRENCY_SYMBOLS = {
    "BRL": "R$",
    "USD": "US$",
    "EUR": "€",
}


def format_currency(value: float, currency: str = "BRL") -> str:
    """
    Format an amount the pt-BR way: "R$ 1.234,56".

    Currencies without a known symbol use their code.
    """
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    digits = f"{abs(value):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol} {digits}"


def feedback_for(action, currency: str = "BRL") -> str:
    """What the assistant is told after one of its actions was applied."""
    if isinstance(action, RecordTransactionAction):
        return f"Confirmei o registro de {format_currency(action.amount, currency)}."
    if isinstance(action, RecordInvestmentAction):
        return f"Investimento em {action.name} salvo."
    return f"Imposto {action.name} registrado para controle."


class ChatFlow:
    """
    Orchestrates one user's conversation with the assistant.

    Flow per turn:
    1. Append the user message (and start the conversation lazily)
    2. Send it to the assistant
    3. Text reply -> append it
    4. Function calls -> validate ALL of them first
    5. Any invalid -> apologize, apply nothing
    6. All valid -> add each record, tell the assistant, append its reply
    Any assistant failure in step 2 -> apologize, no record change.

    Turns are serialized: a message sent while another turn is in
    flight is ignored, as is a blank message.
    """

    def __init__(
        self,
        store: RecordStore,
        assistant: FinancialAssistant,
        storage: Optional[KeyValueStore] = None,
        validator: Optional[ActionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        currency: str = "BRL",
        clock: Callable[[], datetime.date] = datetime.date.today,
    ):
        self._store = store
        self._assistant = assistant
        self._storage = storage
        self._validator = validator or ActionValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._currency = currency
        self._clock = clock
        self._lock = asyncio.Lock()
        self._messages: list[ChatMessage] = self._load_history()

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    async def send_message(self, text: str) -> Optional[list[ChatMessage]]:
        """
        Run one chat turn.

        Returns:
            The messages appended during this turn, or None if the
            message was ignored (blank, or another turn in flight)
        """
        if not text.strip() or self._lock.locked():
            return None

        async with self._lock:
            first_new = len(self._messages)
            correlation_id = create_correlation_id()
            self._audit_logger.log(
                AuditEventBuilder.chat_turn_started(correlation_id, len(text))
            )

            self._append(ChatRole.USER, text)

            try:
                if not self._assistant.is_started:
                    self._assistant.start_conversation(
                        self._store.transactions,
                        self._store.investments,
                        self._store.taxes,
                        today=self._clock(),
                    )
                reply = await self._assistant.send_message(text)
            except AssistantError as e:
                self._audit_logger.log(
                    AuditEventBuilder.assistant_call_failed(str(e), correlation_id)
                )
                self._append(ChatRole.MODEL, APOLOGY)
                return self._messages[first_new:]

            if reply.has_calls:
                await self._apply_calls(reply.calls, correlation_id)
            else:
                self._append(ChatRole.MODEL, reply.text)

            return self._messages[first_new:]

    def reset_conversation(self) -> None:
        """Drop the assistant's context; history stays visible."""
        self._assistant.reset()

    def clear_history(self) -> None:
        self._assistant.reset()
        self._messages = []
        self._persist()

    async def _apply_calls(
        self,
        calls: list[RawActionCall],
        correlation_id: UUID,
    ) -> None:
        results = self._validator.validate_all(calls)

        rejected = [r for r in results if not r.is_valid]
        if rejected:
            for result in rejected:
                self._audit_logger.log(
                    AuditEventBuilder.assistant_action_rejected(
                        function_name=result.call.name,
                        issues=[i.model_dump() for i in result.issues],
                        correlation_id=correlation_id,
                    )
                )
            self._append(ChatRole.MODEL, APOLOGY)
            return

        # Every draft is built before the first record is added
        today = self._clock()
        try:
            drafts = [r.action.to_draft(today) for r in results]
        except ValidationError as e:
            self._audit_logger.log_error(
                error_type="action_apply_failed",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            self._append(ChatRole.MODEL, APOLOGY)
            return

        confirmations = []
        for result, draft in zip(results, drafts):
            action = result.action
            entity_id = self._apply(action, draft, correlation_id)
            self._audit_logger.log(
                AuditEventBuilder.assistant_action_applied(
                    action.kind, entity_id, correlation_id
                )
            )
            confirmations.append((result.call, feedback_for(action, self._currency)))

        try:
            text = await self._assistant.acknowledge(confirmations)
        except AssistantError as e:
            self._audit_logger.log(
                AuditEventBuilder.assistant_call_failed(str(e), correlation_id)
            )
            text = ""

        if text:
            self._append(ChatRole.MODEL, text)
        else:
            for result in results:
                self._append(ChatRole.MODEL, FALLBACK_REPLIES[result.action.kind])

    def _apply(self, action, draft, correlation_id: UUID) -> str:
        """Add the record an action describes. Returns its id."""
        if isinstance(action, RecordTransactionAction):
            items = self._store.add_transaction(
                draft, correlation_id=correlation_id, via_assistant=True
            )
        elif isinstance(action, RecordInvestmentAction):
            items = self._store.add_investment(
                draft, correlation_id=correlation_id, via_assistant=True
            )
        elif isinstance(action, RecordTaxAction):
            items = self._store.add_tax(
                draft, correlation_id=correlation_id, via_assistant=True
            )
        else:
            raise TypeError(f"Unsupported action: {action!r}")

        # New records are prepended
        return items[0].id

    def _append(self, role: ChatRole, text: str) -> None:
        self._messages = [*self._messages, ChatMessage(role=role, text=text)]
        self._persist()

    def _load_history(self) -> list[ChatMessage]:
        if self._storage is None:
            return []
        messages = []
        try:
            raw = self._storage.get_collection(self._store.user_email, CollectionKind.CHAT)
        except StorageError as e:
            logger.error("chat_history_unreadable", error=str(e))
            return []
        for entry in raw:
            try:
                messages.append(ChatMessage.model_validate(entry))
            except ValidationError:
                continue
        return messages

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.set_collection(
                self._store.user_email,
                CollectionKind.CHAT,
                [m.to_storage() for m in self._messages],
            )
        except StorageError as e:
            self._audit_logger.log_persistence_failed("chat", str(e))


class FinanceSession:
    """
    Everything one signed-in user works with.

    Owns the record store, the analytics engine over it, and the chat.
    Changing the dashboard range resets the assistant's context, since
    that context was built from a data snapshot.
    """

    def __init__(
        self,
        user: User,
        storage: KeyValueStore,
        assistant: FinancialAssistant,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime.date] = datetime.date.today,
    ):
        app_settings = (settings or get_settings()).app
        self.user = user
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock

        self.records = RecordStore(user.email, storage, self._audit_logger)
        self.analytics = AnalyticsEngine(self.records, app_settings.default_range_months)
        self.chat = ChatFlow(
            store=self.records,
            assistant=assistant,
            storage=storage,
            audit_logger=self._audit_logger,
            currency=app_settings.currency,
            clock=clock,
        )
        self.currency = app_settings.currency
        self._date_range = self.analytics.default_range(clock())

    @property
    def date_range(self) -> DateRange:
        return self._date_range

    def set_date_range(self, date_range: DateRange) -> None:
        if date_range != self._date_range:
            self._date_range = date_range
            self.chat.reset_conversation()

    def summary(self) -> DashboardSummary:
        return self.analytics.get_summary(self._date_range)

    def format(self, value: float) -> str:
        return format_currency(value, self.currency)

    def clear_data(self) -> dict[str, int]:
        """Delete every record and the chat history of this user."""
        counts = self.records.clear_all()
        self.chat.clear_history()
        return counts


class AccountFlow:
    """
    Registration and sign-in, audited.

    Passwords never reach the audit log; emails do.
    """

    def __init__(
        self,
        directory: UserDirectory,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._directory = directory
        self._audit_logger = audit_logger or AuditLogger()

    def register(self, name: str, email: str, password: str) -> User:
        """
        Create an account and sign it in.

        Raises:
            UserAlreadyExistsError: If the email is taken
        """
        try:
            user = self._directory.register(name, email, password)
        except UserAlreadyExistsError:
            logger.info("registration_rejected", email=email.strip().lower())
            raise
        self._audit_logger.for_user(user.email).log(
            AuditEventBuilder.user_registered(user.email)
        )
        self._directory.start_session(user)
        return user

    def sign_in(self, email: str, password: str) -> Optional[User]:
        user = self._directory.verify(email, password)
        if user is None:
            self._audit_logger.log(AuditEventBuilder.sign_in_failed(email.strip().lower()))
            return None
        self._audit_logger.for_user(user.email).log(
            AuditEventBuilder.user_signed_in(user.email)
        )
        self._directory.start_session(user)
        return user

    def resume(self) -> Optional[User]:
        """The user of the stored session, if any."""
        return self._directory.current_session()

    def sign_out(self) -> None:
        self._directory.end_session()


def create_storage(settings: Optional[StorageSettings] = None) -> KeyValueStore:
    """Key-value backend selected by configuration."""
    settings = settings or get_settings().storage
    if settings.backend == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(settings.data_dir, settings.write_attempts)


def create_session(
    user: User,
    storage: Optional[KeyValueStore] = None,
    assistant: Optional[FinancialAssistant] = None,
    settings: Optional[Settings] = None,
) -> FinanceSession:
    """
    Factory function to create a signed-in session.

    Args:
        user: The signed-in user
        storage: Key-value backend; built from settings when None
        assistant: Assistant to chat with; a Gemini-backed one when None
        settings: Settings to use; the cached ones when None

    Returns:
        FinanceSession wired with a per-user audit logger
    """
    settings = settings or get_settings()
    storage = storage or create_storage(settings.storage)
    audit_logger = AuditLogger(
        storage=storage,
        user_email=user.email,
        history_limit=settings.app.audit_history_limit,
    )
    return FinanceSession(
        user=user,
        storage=storage,
        assistant=assistant or FinancialAssistant(settings.gemini),
        audit_logger=audit_logger,
        settings=settings,
    )
