"""Exchange (shuffle) parser."""

from __future__ import annotations

import re

from plansight.core.exceptions import PlanParseError
from plansight.parsers.models import ExchangePlan
from plansight.parsers.text import remove_hash_ids, split_top_level, strip_engine_prefix

_PARTITIONING_PATTERN = re.compile(r"^(\w+)(?:\((.*)\))?$", re.DOTALL)
_SHUFFLE_ORIGIN_PATTERN = re.compile(r"^[A-Z][A-Z_]+$")
_PLAN_ID_PATTERN = re.compile(r"^\[plan_id=(\d+)\]$")


def parse_exchange(text: str) -> ExchangePlan:
    """Parse an Exchange description.

    Accepts the vanilla and accelerated layouts, for example
    ``Exchange hashpartitioning(a#1, 200), ENSURE_REQUIREMENTS, [plan_id=42]`` or
    ``GpuColumnarExchange gpuhashpartitioning(a#1, 200), ENSURE_REQUIREMENTS``.

    Examples
    --------
    >>> plan = parse_exchange("Exchange hashpartitioning(id#1, 200), ENSURE_REQUIREMENTS")
    >>> plan.partitioning, plan.fields, plan.num_partitions
    ('hashpartitioning', ['id'], 200)
    """
    head, _, arguments = text.strip().partition(" ")
    if not strip_engine_prefix(head).endswith("Exchange"):
        raise PlanParseError("Exchange", "expected an Exchange operator", text)

    parts = split_top_level(remove_hash_ids(arguments))
    if not parts:
        raise PlanParseError("Exchange", "missing partitioning", text)

    match = _PARTITIONING_PATTERN.match(parts[0])
    if match is None:
        raise PlanParseError("Exchange", f"unrecognized partitioning {parts[0]!r}", text)
    partitioning = match.group(1)
    if partitioning.startswith("gpu"):
        partitioning = partitioning[len("gpu") :]

    fields: list[str] = []
    num_partitions: int | None = 1 if partitioning == "SinglePartition" else None
    if match.group(2) is not None:
        partition_arguments = split_top_level(match.group(2))
        if partition_arguments and partition_arguments[-1].isdigit():
            num_partitions = int(partition_arguments.pop())
        fields = partition_arguments

    shuffle_origin: str | None = None
    plan_id: int | None = None
    for part in parts[1:]:
        if (plan_id_match := _PLAN_ID_PATTERN.match(part)) is not None:
            plan_id = int(plan_id_match.group(1))
        elif shuffle_origin is None and _SHUFFLE_ORIGIN_PATTERN.match(part):
            shuffle_origin = part

    return ExchangePlan(
        partitioning=partitioning,
        fields=fields,
        num_partitions=num_partitions,
        shuffle_origin=shuffle_origin,
        plan_id=plan_id,
    )
