"""Parsers for row-wise operators: Filter and Project."""

from __future__ import annotations

from plansight.core.exceptions import PlanParseError
from plansight.parsers.models import FilterPlan, ProjectPlan
from plansight.parsers.text import (
    parse_bracket_list,
    remove_hash_ids,
    strip_operator,
    strip_outer_parens,
)


def parse_filter(text: str) -> FilterPlan:
    """Parse ``Filter (predicate)`` into its predicate without the outer parentheses.

    Examples
    --------
    >>> parse_filter("Filter (isnotnull(age#3) AND (age#3 > 21))").condition
    'isnotnull(age) AND (age > 21)'
    """
    condition = strip_outer_parens(remove_hash_ids(strip_operator(text, "Filter")))
    if not condition:
        raise PlanParseError("Filter", "missing predicate", text)
    return FilterPlan(condition=condition)


def parse_project(text: str) -> ProjectPlan:
    """Parse ``Project [a#1, (b#2 + 1) AS c#3]`` into its output expressions."""
    arguments = strip_operator(text, "Project")
    try:
        fields = parse_bracket_list(remove_hash_ids(arguments))
    except ValueError as e:
        raise PlanParseError("Project", "missing field list", text) from e
    return ProjectPlan(fields=fields)
