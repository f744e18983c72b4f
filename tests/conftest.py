"""Shared pytest fixtures for plansight tests.

- id_factory: deterministic identity generation for aggregator tests
- make_snapshot / make_plan: builders for raw execution inputs
- reset_logging: removes loguru handlers added by a test
"""

from __future__ import annotations

from collections.abc import Callable
from itertools import count
from typing import Any

import pytest
from loguru import logger

from plansight.core import logging as plansight_logging
from plansight.core.config import clear_config_cache
from plansight.core.domain.inputs import ExecutionPlan, ExecutionSnapshot


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Identity factory returning id-1, id-2, ..."""
    counter = count(1)
    return lambda: f"id-{next(counter)}"


def _node(node_id: int, name: str, rows: int | None = None, **extra: Any) -> dict[str, Any]:
    metrics = [{"name": "number of output rows", "value": str(rows)}] if rows is not None else []
    return {"nodeId": node_id, "nodeName": name, "metrics": metrics, **extra}


@pytest.fixture
def make_node() -> Callable[..., dict[str, Any]]:
    """Builder for raw node payloads with an optional row counter."""
    return _node


@pytest.fixture
def make_snapshot() -> Callable[..., ExecutionSnapshot]:
    """Builder for execution snapshots from node payloads and edge pairs."""

    def build(
        execution_id: int | str = 1,
        nodes: list[dict[str, Any]] | None = None,
        edges: list[tuple[int, int]] | None = None,
        status: str = "RUNNING",
        **fields: Any,
    ) -> ExecutionSnapshot:
        return ExecutionSnapshot.model_validate({
            "id": execution_id,
            "status": status,
            "nodes": nodes or [],
            "edges": [{"fromId": src, "toId": dst} for src, dst in edges or []],
            **fields,
        })

    return build


@pytest.fixture
def make_plan() -> Callable[..., ExecutionPlan]:
    """Builder for plan-description payloads keyed by node id."""

    def build(execution_id: int | str, texts: dict[int, str]) -> ExecutionPlan:
        return ExecutionPlan.model_validate({
            "executionId": execution_id,
            "nodesPlan": [
                {"id": node_id, "planDescription": text} for node_id, text in texts.items()
            ],
        })

    return build


@pytest.fixture
def pipeline_snapshot(make_snapshot, make_node) -> ExecutionSnapshot:
    """Scan -> Filter -> Exchange -> HashAggregate with 1000/1000/1000/10 rows."""
    return make_snapshot(
        1,
        nodes=[
            make_node(0, "Scan parquet", 1000),
            make_node(1, "Filter", 1000),
            make_node(2, "Exchange", 1000),
            make_node(3, "HashAggregate", 10),
        ],
        edges=[(0, 1), (1, 2), (2, 3)],
    )


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop loguru handlers added during a test and clear cached config."""
    yield
    for handler_id in plansight_logging._HANDLER_IDS:
        try:
            logger.remove(handler_id)
        except ValueError:
            pass
    plansight_logging._HANDLER_IDS.clear()
    plansight_logging._CURRENT_CONFIG = None
    clear_config_cache()
