"""Parsers for row-limiting and partition-reducing operators."""

from __future__ import annotations

import re

from plansight.core.exceptions import PlanParseError
from plansight.parsers.models import CoalescePlan, CollectLimitPlan, TakeOrderedAndProjectPlan
from plansight.parsers.text import (
    parse_bracket_list,
    parse_int,
    remove_hash_ids,
    split_top_level,
    strip_operator,
)

_LIMIT_PATTERN = re.compile(r"limit=(\d+)")


def parse_take_ordered_and_project(text: str) -> TakeOrderedAndProjectPlan:
    """Parse ``TakeOrderedAndProject(limit=10, orderBy=[...], output=[...])``."""
    cleaned = remove_hash_ids(text)
    limit_match = _LIMIT_PATTERN.search(cleaned)
    if limit_match is None:
        raise PlanParseError("TakeOrderedAndProject", "missing limit", text)

    body_start = cleaned.find("(")
    if body_start < 0 or not cleaned.rstrip().endswith(")"):
        raise PlanParseError("TakeOrderedAndProject", "missing argument list", text)
    arguments = split_top_level(cleaned[body_start + 1 : cleaned.rstrip().rfind(")")])

    sort_by: list[str] = []
    output: list[str] = []
    for argument in arguments:
        key, _, value = argument.partition("=")
        if key == "orderBy":
            sort_by = parse_bracket_list(value)
        elif key == "output":
            output = parse_bracket_list(value)

    return TakeOrderedAndProjectPlan(
        limit=int(limit_match.group(1)), sort_by=sort_by, output=output
    )


def parse_collect_limit(text: str) -> CollectLimitPlan:
    """Parse ``CollectLimit 21`` or ``CollectLimit 21, 5`` (limit, offset).

    Examples
    --------
    >>> parse_collect_limit("CollectLimit 21").limit
    21
    """
    arguments = split_top_level(strip_operator(text, "CollectLimit"))
    if not arguments or len(arguments) > 2:
        raise PlanParseError("CollectLimit", "expected a limit and an optional offset", text)
    limit = parse_int(arguments[0], "CollectLimit", "limit", text)
    offset: int | None = None
    if len(arguments) == 2:
        offset = parse_int(arguments[1], "CollectLimit", "offset", text)
    return CollectLimitPlan(limit=limit, offset=offset)


def parse_coalesce(text: str) -> CoalescePlan:
    """Parse ``Coalesce 4``."""
    argument = strip_operator(text, "Coalesce")
    if not argument:
        raise PlanParseError("Coalesce", "missing partition count", text)
    return CoalescePlan(partition_num=parse_int(argument, "Coalesce", "partition count", text))
