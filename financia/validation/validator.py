"""
Assistant Action Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Function name must be one we declared
- Required arguments present, types and enums correct
- Amounts must not be negative
This catches hallucinated or malformed function calls.

STAGE 2 - SEMANTIC VALIDATION:
- Category belongs to the matching taxonomy
- Explicit transaction type agrees with the category
These are warnings only: the record is still stored, and the category
resolver falls back to "Other" when displaying it.

IMPORTANT: Validation NEVER silently fixes issues and NEVER raises.
Anything the assistant sends comes back as a result with issues.
"""

from typing import Any

from pydantic import TypeAdapter, ValidationError

from financia.models.actions import (
    ACTION_KINDS_BY_FUNCTION,
    ActionValidationResult,
    AssistantAction,
    RawActionCall,
    RecordInvestmentAction,
    RecordTaxAction,
    RecordTransactionAction,
    ValidationIssue,
)
from financia.models.categories import (
    CategoryKind,
    infer_transaction_type,
    is_known_category,
    kind_for_type,
)


_ISSUE_TYPES = {
    "missing": "missing",
    "greater_than_equal": "negative_amount",
    "enum": "invalid_choice",
    "literal_error": "invalid_choice",
}


def _field_name(loc: tuple) -> str:
    # Discriminated union errors are prefixed with the tag
    parts = [str(p) for p in loc if p not in ACTION_KINDS_BY_FUNCTION.values()]
    return ".".join(parts) or "arguments"


class ActionValidator:
    """
    Turns raw assistant function calls into typed actions.

    Stateless; one instance can validate any number of calls.
    """

    def __init__(self):
        self._adapter = TypeAdapter(AssistantAction)

    def _validate_schema(
        self,
        call: RawActionCall,
    ) -> tuple[Any, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (action_or_None, list_of_issues)
        """
        kind = ACTION_KINDS_BY_FUNCTION.get(call.name)
        if kind is None:
            return None, [ValidationIssue(
                field="function",
                issue_type="unknown_function",
                message=f"Unknown function: {call.name}",
                severity="error",
            )]

        try:
            action = self._adapter.validate_python({**call.args, "kind": kind})
        except ValidationError as e:
            issues = []
            seen = set()
            for error in e.errors():
                field = _field_name(error["loc"])
                if field in seen:
                    continue
                seen.add(field)
                issues.append(ValidationIssue(
                    field=field,
                    issue_type=_ISSUE_TYPES.get(error["type"], "invalid_value"),
                    message=f"{field}: {error['msg']}",
                    severity="error",
                ))
            return None, issues

        return action, []

    def _validate_semantic(self, action: Any) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Only produces warnings.
        """
        issues = []

        if isinstance(action, RecordTransactionAction):
            if action.type is not None:
                kind = kind_for_type(action.type)
                known = is_known_category(action.category, kind)
                if not known and is_known_category(
                    action.category,
                    kind_for_type(infer_transaction_type(action.category)),
                ):
                    issues.append(ValidationIssue(
                        field="category",
                        issue_type="type_mismatch",
                        message=(
                            f"Category '{action.category}' does not belong to "
                            f"{action.type.value} transactions"
                        ),
                        severity="warning",
                    ))
                    return issues
            else:
                known = (
                    is_known_category(action.category, CategoryKind.INCOME)
                    or is_known_category(action.category, CategoryKind.EXPENSE)
                )
        elif isinstance(action, RecordInvestmentAction):
            known = is_known_category(action.category, CategoryKind.INVESTMENT)
        elif isinstance(action, RecordTaxAction):
            known = is_known_category(action.category, CategoryKind.TAX)
        else:
            known = True

        if not known:
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"Unknown category '{action.category}'",
                severity="warning",
            ))

        return issues

    def validate(self, call: RawActionCall) -> ActionValidationResult:
        """
        Run the full two-stage validation for one call.

        Stage 2 only runs when stage 1 produced an action.
        """
        action, issues = self._validate_schema(call)
        if action is not None:
            issues.extend(self._validate_semantic(action))

        return ActionValidationResult(call=call, action=action, issues=issues)

    def validate_all(self, calls: list[RawActionCall]) -> list[ActionValidationResult]:
        return [self.validate(call) for call in calls]
