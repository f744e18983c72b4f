"""Join parser covering key-based, nested-loop and cartesian joins."""

from __future__ import annotations

from plansight.core.exceptions import PlanParseError
from plansight.parsers.models import JoinPlan
from plansight.parsers.text import (
    parse_bracket_list,
    remove_hash_ids,
    split_top_level,
    strip_engine_prefix,
    strip_outer_parens,
)

_KEYED_JOINS = {
    "SortMergeJoin": "SortMerge",
    "BroadcastHashJoin": "BroadcastHash",
    "ShuffledHashJoin": "ShuffledHash",
    "ShuffleHashJoin": "ShuffledHash",
}
_BUILD_SIDES = {"BuildLeft": "Left", "BuildRight": "Right"}
_NULL_AWARE_FLAGS = frozenset({"true", "false"})


def _condition(parts: list[str]) -> str | None:
    for part in parts:
        if part in _BUILD_SIDES or part in _NULL_AWARE_FLAGS:
            continue
        return strip_outer_parens(part)
    return None


def _build_side(parts: list[str]) -> str | None:
    for part in parts:
        if part in _BUILD_SIDES:
            return _BUILD_SIDES[part]
    return None


def parse_join(text: str) -> JoinPlan:
    """Parse a join description.

    Supported layouts::

        SortMergeJoin [left keys], [right keys], JoinType[, condition]
        BroadcastHashJoin [left keys], [right keys], JoinType, BuildSide[, condition], isNullAware
        ShuffledHashJoin [left keys], [right keys], JoinType, BuildSide[, condition]
        BroadcastNestedLoopJoin BuildSide, JoinType[, condition]
        CartesianProduct [condition]

    Examples
    --------
    >>> plan = parse_join("SortMergeJoin [id#1], [cust_id#7], Inner")
    >>> plan.join_side_type, plan.join_type, plan.left_keys, plan.right_keys
    ('SortMerge', 'Inner', ['id'], ['cust_id'])
    """
    head, _, arguments = text.strip().partition(" ")
    operator = strip_engine_prefix(head)
    parts = split_top_level(remove_hash_ids(arguments))

    if operator in _KEYED_JOINS:
        if len(parts) < 3:
            raise PlanParseError("Join", "expected keys and a join type", text)
        try:
            left_keys = parse_bracket_list(parts[0])
            right_keys = parse_bracket_list(parts[1])
        except ValueError as e:
            raise PlanParseError("Join", "join keys are not lists", text) from e
        return JoinPlan(
            join_side_type=_KEYED_JOINS[operator],
            join_type=parts[2],
            left_keys=left_keys,
            right_keys=right_keys,
            build_side=_build_side(parts[3:]),
            condition=_condition(parts[3:]),
        )

    if operator == "BroadcastNestedLoopJoin":
        if len(parts) < 2 or parts[0] not in _BUILD_SIDES:
            raise PlanParseError("Join", "expected a build side and a join type", text)
        return JoinPlan(
            join_side_type="BroadcastNestedLoop",
            join_type=parts[1],
            build_side=_BUILD_SIDES[parts[0]],
            condition=_condition(parts[2:]),
        )

    if operator == "CartesianProduct":
        condition = strip_outer_parens(remove_hash_ids(arguments)) or None
        return JoinPlan(join_side_type="Cartesian", join_type="Cross", condition=condition)

    raise PlanParseError("Join", f"unsupported join operator {head!r}", text)
