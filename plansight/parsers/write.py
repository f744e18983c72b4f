"""Parser for file-based insert commands."""

from __future__ import annotations

from plansight.core.exceptions import PlanParseError
from plansight.parsers.models import WriteToHDFSPlan
from plansight.parsers.text import parse_bracket_list, remove_hash_ids, split_top_level

_COMMAND = "Execute InsertIntoHadoopFsRelationCommand"
_FILE_FORMATS = frozenset({"parquet", "orc", "csv", "json", "text", "avro", "delta"})
_SAVE_MODES = frozenset({"Append", "Overwrite", "ErrorIfExists", "Ignore"})


def parse_write_to_hdfs(text: str) -> WriteToHDFSPlan:
    """Parse an ``Execute InsertIntoHadoopFsRelationCommand`` description.

    The command lists its output path first, followed by flags, partition
    columns, file format, options, save mode, the catalog table (when writing
    to one) and finally the output column names.
    """
    stripped = text.strip()
    if not stripped.startswith(_COMMAND):
        raise PlanParseError("WriteToHDFS", f"expected {_COMMAND!r}", text)
    parts = split_top_level(remove_hash_ids(stripped[len(_COMMAND) :]))
    if not parts:
        raise PlanParseError("WriteToHDFS", "missing output location", text)

    location = parts[0]
    format_index = next(
        (index for index, part in enumerate(parts) if part.lower() in _FILE_FORMATS), None
    )
    if format_index is None:
        raise PlanParseError("WriteToHDFS", "no file format found", text)

    partition_keys: list[str] = []
    for part in parts[1:format_index]:
        if part.startswith("["):
            partition_keys = parse_bracket_list(part)
            break

    mode = next((part for part in parts[format_index + 1 :] if part in _SAVE_MODES), None)
    table_name = next(
        (part.replace("`", "") for part in parts[format_index + 1 :] if part.startswith("`")),
        None,
    )

    output_columns: list[str] = []
    last = parts[-1]
    if len(parts) - 1 > format_index and last.startswith("[") and "=" not in last:
        output_columns = parse_bracket_list(last)

    return WriteToHDFSPlan(
        location=location,
        format=parts[format_index],
        mode=mode,
        table_name=table_name,
        partition_keys=partition_keys,
        output_columns=output_columns,
    )
