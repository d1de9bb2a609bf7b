"""Delegation utilities: validation rules and SQL."""

from .validation import DelegationValidationRules, parse_enum, validated

__all__ = ["DelegationValidationRules", "parse_enum", "validated"]
