"""AI Agents package."""

from financia.agents.assistant import (
    FUNCTION_DECLARATIONS,
    AssistantError,
    AssistantReply,
    FinancialAssistant,
    build_system_instruction,
    summarize_taxes,
    summarize_transactions,
)

__all__ = [
    "FUNCTION_DECLARATIONS",
    "AssistantError",
    "AssistantReply",
    "FinancialAssistant",
    "build_system_instruction",
    "summarize_taxes",
    "summarize_transactions",
]
