"""File scan parser."""

from __future__ import annotations

import math
import re

from plansight.core.exceptions import PlanParseError
from plansight.core.utils.units import parse_bytes, parse_number
from plansight.parsers.models import FileScanPlan
from plansight.parsers.text import key_value_sections, parse_bracket_list, remove_hash_ids

_SECTION_KEYS = (
    "Batched",
    "DataFilters",
    "Format",
    "Location",
    "PartitionFilters",
    "PushedFilters",
    "ReadSchema",
)
_PATH_COUNT_PATTERN = re.compile(r"\((\d+) paths?\)")
_STATISTICS_PATTERN = re.compile(
    r",?\s*Statistics\(sizeInBytes=(?P<size>[^,)]+)(?:,\s*rowCount=(?P<rows>[^)]+))?\)"
)


def _filters(value: str | None) -> list[str]:
    if value is None:
        return []
    try:
        return parse_bracket_list(value)
    except ValueError:
        return [value] if value else []


def _format_and_table(node_name: str) -> tuple[str | None, str | None]:
    # "Scan parquet db.sales" -> ("parquet", "db.sales")
    words = node_name.split()
    if len(words) < 2 or not words[0].endswith("Scan"):
        return None, None
    table = " ".join(words[2:]) or None
    return words[1], table


def parse_file_scan(text: str, node_name: str) -> FileScanPlan:
    """Parse a scan description together with its node name.

    The node name carries the source format and table (``Scan parquet db.sales``);
    the text carries ``Key: value`` sections such as ``Location``,
    ``PushedFilters`` and ``ReadSchema``, plus an optional ``Statistics`` clause.

    Raises
    ------
    PlanParseError
        If the text has neither a known section nor a ``Statistics`` clause
    """
    cleaned = remove_hash_ids(text)

    size_in_bytes: int | None = None
    row_count: int | None = None
    if (statistics := _STATISTICS_PATTERN.search(cleaned)) is not None:
        size_in_bytes = parse_bytes(statistics.group("size"))
        rows = parse_number(statistics.group("rows"))
        row_count = math.trunc(rows) if rows is not None else None
        cleaned = cleaned[: statistics.start()] + cleaned[statistics.end() :]

    sections = key_value_sections(cleaned, _SECTION_KEYS)
    if not sections and statistics is None:
        raise PlanParseError("FileScan", "no scan details found", text)
    name_format, table_name = _format_and_table(node_name)

    location: str | None = None
    path_count: int | None = None
    if (raw_location := sections.get("Location")) is not None:
        if (count_match := _PATH_COUNT_PATTERN.search(raw_location)) is not None:
            path_count = int(count_match.group(1))
        bracket_start = raw_location.find("[")
        if bracket_start >= 0 and raw_location.endswith("]"):
            location = raw_location[bracket_start + 1 : -1].strip() or None
        else:
            location = raw_location

    return FileScanPlan(
        format=sections.get("Format") or name_format,
        location=location,
        path_count=path_count,
        table_name=table_name,
        pushed_filters=_filters(sections.get("PushedFilters")),
        partition_filters=_filters(sections.get("PartitionFilters")),
        data_filters=_filters(sections.get("DataFilters")),
        read_schema=sections.get("ReadSchema"),
        size_in_bytes=size_in_bytes,
        row_count=row_count,
    )
