"""Core exception hierarchy for plansight.

This module provides a centralized exception hierarchy for the plan enrichment
engine. All plansight exceptions inherit from PlanSightError for easy exception
handling. None of them is fatal to an enrichment pass: parsers raise
PlanParseError and the per-node boundary turns it into "no parsed plan".
"""

from __future__ import annotations

# ============================================================================
# Base Exception
# ============================================================================


class PlanSightError(Exception):
    """Base exception for all plansight errors.

    Catch this to handle all plansight-specific errors.
    """

    pass


# ============================================================================
# Configuration & Validation Errors
# ============================================================================


class ConfigurationError(PlanSightError):
    """Raised when configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("logging", "unknown format 'xml'")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the component with invalid configuration
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ValidationError(PlanSightError):
    """Raised when data validation fails.

    Examples
    --------
    Example usage::

        raise ValidationError("row_count_metric_names", "cannot be empty")
    """

    def __init__(self, field: str, constraint: str, value: object = None) -> None:
        """Initialize validation error.

        Args
        ----
            field: Name of the field that failed validation
            constraint: Description of the validation constraint
            value: The invalid value (optional)
        """
        if value is not None:
            msg = f"Validation failed for '{field}': {constraint} (got {value!r})"
        else:
            msg = f"Validation failed for '{field}': {constraint}"
        super().__init__(msg)
        self.field = field
        self.constraint = constraint
        self.value = value


# ============================================================================
# Plan Parsing Errors
# ============================================================================


class PlanParseError(PlanSightError):
    """Raised by an operator parser when plan text does not match its layout.

    Examples
    --------
    Example usage::

        raise PlanParseError("Coalesce", "missing partition count", "Coalesce")
    """

    _MAX_TEXT_IN_MESSAGE = 120

    def __init__(self, operator: str, reason: str, text: str | None = None) -> None:
        """Initialize plan parse error.

        Args
        ----
            operator: Operator kind whose parser rejected the text
            reason: Why the text could not be parsed
            text: The offending plan description (optional, truncated in the message)
        """
        msg = f"Cannot parse {operator} plan: {reason}"
        if text is not None:
            shown = text if len(text) <= self._MAX_TEXT_IN_MESSAGE else text[:117] + "..."
            msg += f" (text: {shown!r})"
        super().__init__(msg)
        self.operator = operator
        self.reason = reason
        self.text = text


# ============================================================================
# Graph Errors
# ============================================================================


class GraphError(PlanSightError):
    """Base exception for PlanGraph errors."""

    pass


class NodeNotFoundError(GraphError):
    """Raised when a graph operation references a node that is not in the graph."""

    def __init__(self, node_id: int) -> None:
        super().__init__(f"Node {node_id} not found in graph")
        self.node_id = node_id


__all__ = [
    "PlanSightError",
    "ConfigurationError",
    "ValidationError",
    "PlanParseError",
    "GraphError",
    "NodeNotFoundError",
]
