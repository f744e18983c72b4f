"""Raw collaborator inputs, validated with pydantic.

The models accept the camelCase field names emitted by the engine's REST
payloads as well as their snake_case Python names.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from plansight.core.domain.models import ExecutionStatus


class _RawModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class RawMetric(_RawModel):
    """A metric as reported by the engine, value kept as display text."""

    name: str
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, int | float):
            return str(value)
        return value


class RawNode(_RawModel):
    """A plan node as it appears in an execution snapshot."""

    node_id: int
    node_name: str
    metrics: list[RawMetric] = Field(default_factory=list)
    whole_stage_codegen_id: int | None = None
    stage_id: int | None = None


class RawEdge(_RawModel):
    from_id: int
    to_id: int


class ExecutionSnapshot(_RawModel):
    """One polled view of a query execution."""

    id: str
    status: ExecutionStatus
    description: str = ""
    submission_time: str | None = None
    duration: int | None = None
    running_job_ids: list[int] = Field(default_factory=list)
    failed_job_ids: list[int] = Field(default_factory=list)
    success_job_ids: list[int] = Field(default_factory=list)
    nodes: list[RawNode] = Field(default_factory=list)
    edges: list[RawEdge] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("id")
    @classmethod
    def _id_is_numeric(cls, value: str) -> str:
        if not value.isdigit():
            raise ValueError(f"execution id must be a non-negative integer, got {value!r}")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _status_case(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value


class NodePlanText(_RawModel):
    """Plan-description text of one node."""

    id: int
    plan_description: str
    rdd_scope_id: str | None = None


class ExecutionPlan(_RawModel):
    """Plan-description texts for all nodes of one execution."""

    execution_id: str
    nodes_plan: list[NodePlanText] = Field(default_factory=list)

    @field_validator("execution_id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class CommitInfo(_RawModel):
    """Table-format commit metadata attached to the node that wrote it."""

    execution_id: str
    table_name: str | None = None
    commit_id: str | None = None
    operation: str | None = None
    summary: dict[str, str] = Field(default_factory=dict)

    @field_validator("execution_id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class RddStorageInfo(_RawModel):
    """Cache location of one persisted dataset."""

    rdd_id: int
    name: str = ""
    storage_level: str = ""
    number_of_cached_partitions: int = 0
    memory_used: int = 0
    disk_used: int = 0


class StageStorage(_RawModel):
    """Cached datasets read by one stage, in the engine's order."""

    stage_id: int
    cached_storage: list[RddStorageInfo] = Field(default_factory=list)


class NodeMetricsUpdate(_RawModel):
    """Fresh raw metrics for one node."""

    id: int
    metrics: list[RawMetric] = Field(default_factory=list)


class SnapshotBundle(_RawModel):
    """Everything one polling cycle delivers."""

    executions: list[ExecutionSnapshot] = Field(default_factory=list)
    plans: list[ExecutionPlan] = Field(default_factory=list)
    commits: list[CommitInfo] = Field(default_factory=list)
    stages: list[StageStorage] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: str | Path) -> SnapshotBundle:
        """Load a bundle from a JSON or YAML file.

        Parameters
        ----------
        path : str | Path
            ``.yaml``/``.yml`` files are read with PyYAML, anything else as JSON

        Returns
        -------
        SnapshotBundle
            Validated bundle

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        ValueError
            If the content is not valid JSON/YAML or does not match the schema
            (pydantic's ``ValidationError`` is a ``ValueError``)
        """
        file_path = Path(path)
        text = file_path.read_text(encoding="utf-8")
        if file_path.suffix.lower() in (".yaml", ".yml"):
            try:
                data = yaml.safe_load(text)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {file_path}: {e}") from e
        else:
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {file_path}: {e}") from e
        return cls.model_validate(data or {})
