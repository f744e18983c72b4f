"""Enrichment: classification, contraction, derived metrics and storage attachment."""

from plansight.enrichment.classifier import (
    classify,
    codegen_group_id,
    display_name,
    force_output_node,
    is_codegen_node,
)
from plansight.enrichment.contraction import contract
from plansight.enrichment.metrics import (
    broadcast_duration,
    codegen_duration,
    enrich_metrics,
    exchange_metrics,
    find_node_with_rows,
    rows_from_metrics,
)
from plansight.enrichment.storage import attach_storage_info, node_storage_info

__all__ = [
    "attach_storage_info",
    "broadcast_duration",
    "classify",
    "codegen_duration",
    "codegen_group_id",
    "contract",
    "display_name",
    "enrich_metrics",
    "exchange_metrics",
    "find_node_with_rows",
    "force_output_node",
    "is_codegen_node",
    "node_storage_info",
    "rows_from_metrics",
]
