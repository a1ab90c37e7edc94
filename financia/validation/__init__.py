"""Validation package for assistant actions."""

from financia.validation.validator import ActionValidator

__all__ = ["ActionValidator"]
