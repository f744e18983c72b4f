"""HashAggregate parser."""

from __future__ import annotations

from plansight.core.exceptions import PlanParseError
from plansight.parsers.models import HashAggregatePlan
from plansight.parsers.text import remove_hash_ids, split_top_level, take_balanced


def _bracket_argument(text: str, name: str) -> list[str] | None:
    marker = f"{name}=["
    start = text.find(marker)
    if start < 0:
        return None
    group, _ = take_balanced(text, start + len(marker) - 1)
    return split_top_level(group[1:-1])


def parse_hash_aggregate(text: str) -> HashAggregatePlan:
    """Parse ``HashAggregate(keys=[...], functions=[...])``.

    ``operations`` holds the aggregate function names with the engine's
    ``partial_``/``merge_`` phase prefixes removed.

    Examples
    --------
    >>> plan = parse_hash_aggregate("HashAggregate(keys=[dept#1], functions=[sum(salary#2)])")
    >>> plan.keys, plan.functions, plan.operations
    (['dept'], ['sum(salary)'], ['sum'])
    """
    cleaned = remove_hash_ids(text)
    keys = _bracket_argument(cleaned, "keys")
    functions = _bracket_argument(cleaned, "functions")
    if keys is None or functions is None:
        raise PlanParseError("HashAggregate", "missing keys or functions", text)

    operations: list[str] = []
    for function in functions:
        name = function.split("(", 1)[0].strip()
        for phase in ("partial_", "merge_"):
            name = name.removeprefix(phase)
        if name and name not in operations:
            operations.append(name)

    return HashAggregatePlan(keys=keys, functions=functions, operations=operations)
