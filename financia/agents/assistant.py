"""
Financial Assistant

DESIGN DECISION: The assistant talks to Gemini with function calling.
The model never writes records itself: it can only ASK for one of three
actions (save_transaction, save_investment, save_tax). The chat flow
validates those requests and applies them through the record store.

CRITICAL BOUNDARIES:
- CAN: Turn a natural-language description into a structured request
- CAN: Answer questions using the summary it was given at start
- CANNOT: Edit or delete records
- CANNOT: Persist anything on its own

The LLM is a TRANSLATOR, not a BOOKKEEPER.

No retry policy: a failed call surfaces as AssistantError and the chat
flow answers with an apology.
"""

import datetime
import json
from typing import Any, Optional, Sequence

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field

from financia.config import GeminiSettings, get_settings
from financia.models.actions import RawActionCall
from financia.models.categories import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    INVESTMENT_CATEGORIES,
    TAX_CATEGORIES,
)
from financia.models.records import (
    Investment,
    PaymentMethod,
    Tax,
    TaxStatus,
    Transaction,
    TransactionType,
)


logger = structlog.get_logger(__name__)


class AssistantError(Exception):
    """The model could not be reached or returned something unusable."""
    pass


class AssistantReply(BaseModel):
    """What one model turn produced."""

    text: str = Field(
        default="",
        description="Plain text of the reply, possibly empty"
    )
    calls: list[RawActionCall] = Field(
        default_factory=list,
        description="Function calls requested by the model, in order"
    )

    @property
    def has_calls(self) -> bool:
        return bool(self.calls)


def _ids(categories) -> list[str]:
    return [c.id for c in categories]


SAVE_TRANSACTION = {
    "name": "save_transaction",
    "description": (
        "Registra uma nova transação financeira (receita ou despesa) "
        "a partir do relato do usuário."
    ),
    "parameters": {
        "type": "OBJECT",
        "properties": {
            "description": {
                "type": "STRING",
                "description": "Breve descrição do que foi comprado ou recebido.",
            },
            "amount": {
                "type": "NUMBER",
                "description": "Valor total da transação.",
            },
            "category": {
                "type": "STRING",
                "description": (
                    "Categoria que melhor se encaixa: "
                    + ", ".join(_ids(INCOME_CATEGORIES) + _ids(EXPENSE_CATEGORIES))
                ),
            },
            "type": {
                "type": "STRING",
                "enum": [t.value for t in TransactionType],
                "description": 'Se é uma "income" ou "expense".',
            },
            "paymentMethod": {
                "type": "STRING",
                "enum": [m.value for m in PaymentMethod],
                "description": "Método utilizado.",
            },
            "date": {
                "type": "STRING",
                "description": "Data no formato YYYY-MM-DD.",
            },
        },
        "required": ["description", "amount", "category", "type", "paymentMethod"],
    },
}

SAVE_INVESTMENT = {
    "name": "save_investment",
    "description": "Registra um novo investimento feito pelo usuário.",
    "parameters": {
        "type": "OBJECT",
        "properties": {
            "name": {
                "type": "STRING",
                "description": "Nome do ativo ou instituição (ex: Petrobras, Tesouro Selic).",
            },
            "ticker": {
                "type": "STRING",
                "description": "Código do ativo, se houver (ex: PETR4, BTC).",
            },
            "amount": {
                "type": "NUMBER",
                "description": "Valor investido.",
            },
            "category": {
                "type": "STRING",
                "description": "Categoria: " + ", ".join(_ids(INVESTMENT_CATEGORIES)),
            },
            "date": {
                "type": "STRING",
                "description": "Data no formato YYYY-MM-DD.",
            },
        },
        "required": ["name", "amount", "category"],
    },
}

SAVE_TAX = {
    "name": "save_tax",
    "description": "Registra um novo imposto ou taxa a ser controlado.",
    "parameters": {
        "type": "OBJECT",
        "properties": {
            "name": {
                "type": "STRING",
                "description": "Nome do imposto (ex: IPTU, IPVA, IRPF).",
            },
            "amount": {
                "type": "NUMBER",
                "description": "Valor do imposto.",
            },
            "dueDate": {
                "type": "STRING",
                "description": "Data de vencimento no formato YYYY-MM-DD.",
            },
            "category": {
                "type": "STRING",
                "description": "Categoria: " + ", ".join(_ids(TAX_CATEGORIES)),
            },
            "status": {
                "type": "STRING",
                "enum": [s.value for s in TaxStatus],
                "description": 'Se o usuário disser "paguei", use "paid".',
            },
        },
        "required": ["name", "amount", "dueDate", "category", "status"],
    },
}

FUNCTION_DECLARATIONS = [SAVE_TRANSACTION, SAVE_INVESTMENT, SAVE_TAX]


def summarize_transactions(transactions: Sequence[Transaction]) -> dict[str, float]:
    """Totals keyed by "Receita: <category>" / "Despesa: <category>"."""
    summary: dict[str, float] = {}
    for tx in transactions:
        label = "Receita" if tx.is_income else "Despesa"
        key = f"{label}: {tx.category}"
        summary[key] = summary.get(key, 0.0) + tx.amount
    return summary


def summarize_taxes(taxes: Sequence[Tax]) -> dict[str, float]:
    summary: dict[str, float] = {}
    for tax in taxes:
        summary[tax.status.value] = summary.get(tax.status.value, 0.0) + tax.amount
    return summary


def build_system_instruction(
    transactions: Sequence[Transaction],
    taxes: Sequence[Tax],
    today: datetime.date,
) -> str:
    """Persona, capabilities and a snapshot of the user's data."""
    tx_summary = json.dumps(summarize_transactions(transactions), ensure_ascii=False)
    tax_summary = json.dumps(summarize_taxes(taxes), ensure_ascii=False)

    return f"""Você é o Assistente Financ.ia, responsável pela contabilidade pessoal do usuário.
Data de hoje: {today.isoformat()}.

Capacidades:
1. Transações (receitas e despesas): 'save_transaction'.
2. Investimentos e aportes: 'save_investment'.
3. Impostos e taxas: 'save_tax'.

Contexto atual:
- Transações: {tx_summary}
- Impostos: {tax_summary}

Estilo:
- Respostas curtas e elegantes.
- Ajude o usuário a não esquecer prazos de impostos.
- Use negrito em **valores** e **datas**.
- Nunca invente valores que o usuário não informou."""


def _reply_from_response(response: Any) -> AssistantReply:
    """Split a Gemini response into text and function calls."""
    texts = []
    calls = []
    for part in response.parts:
        fc = getattr(part, "function_call", None)
        if fc and fc.name:
            calls.append(RawActionCall(name=fc.name, args=dict(fc.args or {})))
        elif getattr(part, "text", None):
            texts.append(part.text)
    return AssistantReply(text="".join(texts).strip(), calls=calls)


def function_response_part(call: RawActionCall, feedback: str):
    """The reply part telling the model what became of one call."""
    return genai.protos.Part(
        function_response=genai.protos.FunctionResponse(
            name=call.name,
            response={"result": feedback},
        )
    )


class FinancialAssistant:
    """
    Conversational assistant backed by Gemini.

    The conversation is started lazily with a snapshot of the user's
    data and kept until reset() (e.g., when the dashboard range changes).
    """

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._chat = None
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)

    @property
    def is_started(self) -> bool:
        return self._chat is not None

    def start_conversation(
        self,
        transactions: Sequence[Transaction],
        investments: Sequence[Investment],
        taxes: Sequence[Tax],
        today: Optional[datetime.date] = None,
    ) -> None:
        """
        Open a new chat whose context is the given data snapshot.

        Raises:
            AssistantError: If the model or chat cannot be created
        """
        instruction = build_system_instruction(
            transactions, taxes, today or datetime.date.today()
        )
        try:
            model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                },
                system_instruction=instruction,
                tools=[{"function_declarations": FUNCTION_DECLARATIONS}],
            )
            self._chat = model.start_chat()
        except Exception as e:
            logger.error("assistant_start_failed", error=str(e))
            self._chat = None
            raise AssistantError(str(e)) from e
        logger.info(
            "assistant_conversation_started",
            transactions=len(transactions),
            investments=len(investments),
            taxes=len(taxes),
        )

    def reset(self) -> None:
        """Forget the conversation; the next message starts a fresh one."""
        self._chat = None

    async def send_message(self, text: str) -> AssistantReply:
        """
        Send a user message.

        Raises:
            AssistantError: If no conversation is open or the call fails
        """
        if self._chat is None:
            raise AssistantError("Conversation not started")
        try:
            response = await self._chat.send_message_async(text)
            return _reply_from_response(response)
        except Exception as e:
            logger.error("assistant_call_failed", error=str(e))
            raise AssistantError(str(e)) from e

    async def acknowledge(
        self,
        confirmations: Sequence[tuple[RawActionCall, str]],
    ) -> str:
        """
        Tell the model that the actions it requested were carried out.

        All function responses of a turn go back in a single message,
        in the order the calls were made.

        Args:
            confirmations: (call, feedback) pairs, one per applied call

        Returns:
            The model's text reply (may be empty)

        Raises:
            AssistantError: If no conversation is open or the call fails
        """
        if self._chat is None:
            raise AssistantError("Conversation not started")
        parts = [function_response_part(call, feedback) for call, feedback in confirmations]
        try:
            response = await self._chat.send_message_async(parts)
            return _reply_from_response(response).text
        except Exception as e:
            logger.error(
                "assistant_ack_failed",
                error=str(e),
                functions=[call.name for call, _ in confirmations],
            )
            raise AssistantError(str(e)) from e
