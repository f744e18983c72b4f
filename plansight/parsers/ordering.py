"""Parsers for ordering operators: Sort and Window."""

from __future__ import annotations

from plansight.core.exceptions import PlanParseError
from plansight.parsers.models import SortPlan, WindowPlan
from plansight.parsers.text import (
    parse_bracket_list,
    remove_hash_ids,
    split_top_level,
    strip_operator,
)


def parse_sort(text: str) -> SortPlan:
    """Parse ``Sort [a#1 ASC NULLS FIRST], true, 0``.

    The second argument tells whether the sort is global (true) or within
    partitions (false).
    """
    parts = split_top_level(remove_hash_ids(strip_operator(text, "Sort")))
    if not parts:
        raise PlanParseError("Sort", "missing sort order", text)
    try:
        fields = parse_bracket_list(parts[0])
    except ValueError as e:
        raise PlanParseError("Sort", "sort order is not a list", text) from e
    is_global = len(parts) > 1 and parts[1].lower() == "true"
    return SortPlan(fields=fields, is_global=is_global)


def parse_window(text: str) -> WindowPlan:
    """Parse ``Window [exprs], [partition keys], [order keys]``.

    Examples
    --------
    >>> plan = parse_window(
    ...     "Window [rank(s#2) windowspecdefinition(d#1, s#2 DESC NULLS LAST) AS r#5], "
    ...     "[d#1], [s#2 DESC NULLS LAST]"
    ... )
    >>> plan.partition_fields, plan.sort_fields
    (['d'], ['s DESC NULLS LAST'])
    """
    parts = split_top_level(remove_hash_ids(strip_operator(text, "Window")))
    if not parts or len(parts) > 3:
        raise PlanParseError("Window", "expected up to three field lists", text)
    try:
        lists = [parse_bracket_list(part) for part in parts]
    except ValueError as e:
        raise PlanParseError("Window", "arguments are not field lists", text) from e
    lists.extend([] for _ in range(3 - len(lists)))
    return WindowPlan(select_fields=lists[0], partition_fields=lists[1], sort_fields=lists[2])
