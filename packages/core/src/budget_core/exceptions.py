"""Custom exceptions for Budget Core.

This module provides a small hierarchy of exception classes for the few
places where the engine refuses its input. All exceptions inherit from
BudgetCoreError, making it easy to catch every engine-specific error.

Degenerate-but-valid inputs (zero credit limits, empty series, payments to
unknown accounts) never raise; they produce zeroed results instead.

Example:
    try:
        matcher = RuleMatcher(rule)
    except RuleError as e:
        logger.warning("rule_skipped", rule=e.rule_name, pattern=e.pattern)
    except BudgetCoreError as e:
        logger.error("engine_failed", error=str(e))
"""

from typing import Any, Optional


class BudgetCoreError(Exception):
    """Base exception for all Budget Core errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
        recoverable: Whether the caller can fix the input and retry.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation of the error."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class ValidationError(BudgetCoreError, ValueError):
    """Error raised when a domain record breaks a documented constraint.

    Also a ValueError, so pydantic reports it as a field validation failure
    when it is raised from inside a model validator.

    Attributes:
        field: The field that failed validation.
        value: The invalid value.
        constraint: The validation constraint that was violated.

    Example:
        >>> raise ValidationError(
        ...     "Net amount does not match deductions",
        ...     field="net_amount",
        ...     value="1500.00",
        ...     constraint="gross - taxes - deductions (within 0.01)",
        ... )
        ValidationError: Net amount does not match deductions
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.field = field
        self.value = value
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = value
        if constraint:
            self.details["constraint"] = constraint


class RuleError(BudgetCoreError):
    """Error raised when a routing rule cannot be compiled.

    Attributes:
        rule_name: Name of the offending rule.
        pattern: The regular expression that failed to compile.
    """

    def __init__(
        self,
        message: str,
        *,
        rule_name: Optional[str] = None,
        pattern: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.rule_name = rule_name
        self.pattern = pattern

        if rule_name:
            self.details["rule_name"] = rule_name
        if pattern:
            self.details["pattern"] = pattern


class ConfigurationError(BudgetCoreError):
    """Error raised when engine configuration is invalid.

    Attributes:
        config_key: The configuration key that is problematic.
        expected: Description of the expected value or format.
        actual: The actual value found (if any).
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.config_key = config_key
        self.expected = expected
        self.actual = actual

        if config_key:
            self.details["config_key"] = config_key
        if expected:
            self.details["expected"] = expected
        if actual is not None:
            self.details["actual"] = actual


__all__ = [
    "BudgetCoreError",
    "ValidationError",
    "RuleError",
    "ConfigurationError",
]
