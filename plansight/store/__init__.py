"""Execution store: aggregation, incremental updates and serialization."""

from plansight.store.aggregator import SqlAggregator
from plansight.store.serialization import execution_to_dict, node_to_dict, store_to_dict
from plansight.store.updates import (
    apply_metrics,
    new_identity,
    to_metrics,
    update_store_metrics,
)

__all__ = [
    "SqlAggregator",
    "apply_metrics",
    "execution_to_dict",
    "new_identity",
    "node_to_dict",
    "store_to_dict",
    "to_metrics",
    "update_store_metrics",
]
