"""Parsed operator plans: one pydantic variant per operator kind.

The variants form a closed tagged union discriminated by ``kind``. A node
whose text could not be parsed simply carries no variant.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class _PlanModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class HashAggregatePlan(_PlanModel):
    kind: Literal["HashAggregate"] = "HashAggregate"
    keys: list[str] = Field(default_factory=list)
    functions: list[str] = Field(default_factory=list)
    operations: list[str] = Field(default_factory=list)


class TakeOrderedAndProjectPlan(_PlanModel):
    kind: Literal["TakeOrderedAndProject"] = "TakeOrderedAndProject"
    limit: int
    sort_by: list[str] = Field(default_factory=list)
    output: list[str] = Field(default_factory=list)


class CollectLimitPlan(_PlanModel):
    kind: Literal["CollectLimit"] = "CollectLimit"
    limit: int
    offset: int | None = None


class CoalescePlan(_PlanModel):
    kind: Literal["Coalesce"] = "Coalesce"
    partition_num: int


class WriteToHDFSPlan(_PlanModel):
    """Output location and layout of a file-based insert."""

    kind: Literal["WriteToHDFS"] = "WriteToHDFS"
    location: str
    format: str
    mode: str | None = None
    table_name: str | None = None
    partition_keys: list[str] = Field(default_factory=list)
    output_columns: list[str] = Field(default_factory=list)


class FilterPlan(_PlanModel):
    kind: Literal["Filter"] = "Filter"
    condition: str


class ExchangePlan(_PlanModel):
    """Partitioning of a shuffle.

    ``partitioning`` is the engine's partitioning function name with any
    accelerator prefix removed, e.g. ``hashpartitioning`` or ``SinglePartition``.
    """

    kind: Literal["Exchange"] = "Exchange"
    partitioning: str
    fields: list[str] = Field(default_factory=list)
    num_partitions: int | None = None
    shuffle_origin: str | None = None
    plan_id: int | None = None


class ProjectPlan(_PlanModel):
    kind: Literal["Project"] = "Project"
    fields: list[str] = Field(default_factory=list)


class SortPlan(_PlanModel):
    kind: Literal["Sort"] = "Sort"
    fields: list[str] = Field(default_factory=list)
    is_global: bool = False


class WindowPlan(_PlanModel):
    kind: Literal["Window"] = "Window"
    select_fields: list[str] = Field(default_factory=list)
    partition_fields: list[str] = Field(default_factory=list)
    sort_fields: list[str] = Field(default_factory=list)


class FileScanPlan(_PlanModel):
    """Source and pushdown details of a scan.

    ``size_in_bytes`` and ``row_count`` come from an optimizer ``Statistics``
    clause when the engine includes one.
    """

    kind: Literal["FileScan"] = "FileScan"
    format: str | None = None
    location: str | None = None
    path_count: int | None = None
    table_name: str | None = None
    pushed_filters: list[str] = Field(default_factory=list)
    partition_filters: list[str] = Field(default_factory=list)
    data_filters: list[str] = Field(default_factory=list)
    read_schema: str | None = None
    size_in_bytes: int | None = None
    row_count: int | None = None


class JoinPlan(_PlanModel):
    """Join strategy, type, keys and residual condition."""

    kind: Literal["Join"] = "Join"
    join_side_type: str
    join_type: str
    left_keys: list[str] = Field(default_factory=list)
    right_keys: list[str] = Field(default_factory=list)
    build_side: str | None = None
    condition: str | None = None


ParsedPlan = Annotated[
    HashAggregatePlan
    | TakeOrderedAndProjectPlan
    | CollectLimitPlan
    | CoalescePlan
    | WriteToHDFSPlan
    | FilterPlan
    | ExchangePlan
    | ProjectPlan
    | SortPlan
    | WindowPlan
    | FileScanPlan
    | JoinPlan,
    Field(discriminator="kind"),
]
