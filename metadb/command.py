"""Commands built from change events: the rows to merge, delete or truncate."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any

from .change import Event
from .datatypes import (
    ConversionError,
    DataType,
    Operation,
    convert_data_type,
    convert_type_size,
    data_to_sql_data,
    decode_numeric_bytes,
)
from .dbx import Table

logger = logging.getLogger(__name__)

_UNAVAILABLE_VALUE = "__debezium_unavailable_value"

_OPS = {
    "c": Operation.MERGE,
    "r": Operation.MERGE,
    "u": Operation.MERGE,
    "d": Operation.DELETE,
    "t": Operation.TRUNCATE,
}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class CommandError(ValueError):
    """A change event could not be turned into a command."""


class MessageSet:
    """A set of messages, used to report each distinct message only once."""

    def __init__(self) -> None:
        self._messages: set[str] = set()

    def insert(self, msg: str) -> bool:
        """Add msg; return True if it was not already present."""
        if msg in self._messages:
            return False
        self._messages.add(msg)
        return True

    def __contains__(self, msg: object) -> bool:
        return msg in self._messages

    def __len__(self) -> int:
        return len(self._messages)


@dataclass
class CommandColumn:
    """One column of a command with its type, value and SQL-ready value."""

    name: str = ""
    dtype: DataType = DataType.UNKNOWN
    dtype_size: int = 0
    data: Any = None
    sql_data: str | None = None
    primary_key: int = 0
    unavailable: bool = False

    def __str__(self) -> str:
        return f"{self.name}={self.data}"


@dataclass
class Command:
    """A change to apply to one table, possibly with sub-commands for transformed records."""

    op: Operation = Operation.MERGE
    schema_name: str = ""
    table_name: str = ""
    transformed: bool = False
    parent_table: Table = field(default_factory=lambda: Table("", ""))
    origin: str = ""
    column: list[CommandColumn] = field(default_factory=list)
    source_timestamp: str = ""
    subcommands: list[Command] | None = None

    def add_child(self, child: Command) -> None:
        if self.subcommands is None:
            self.subcommands = []
        self.subcommands.append(child)

    def __str__(self) -> str:
        cols = " ".join(str(c) for c in self.column)
        return f"command = {self.op} {self.schema_name}.{self.table_name} ([{cols}])\n"


@dataclass
class CommandGraph:
    """Root commands, each of which may hold sub-commands."""

    commands: list[Command] = field(default_factory=list)


def _primary_key_not_defined(dedup: MessageSet, topic: str | None) -> None:
    msg = f"primary key not defined: {topic or ''}"
    if dedup.insert(msg):
        logger.warning("%s", msg)


def extract_primary_key(dedup: MessageSet, ce: Event) -> dict[str, int] | None:
    """Map each key field name to its 1-based position; None if the event has no key."""
    if ce.key is None:
        _primary_key_not_defined(dedup, ce.topic)
        return None
    if ce.key.schema is None or ce.key.schema.fields is None:
        raise CommandError("key: $.schema.fields not found")
    primary_key: dict[str, int] = {}
    for position, f in enumerate(ce.key.schema.fields, start=1):
        if not isinstance(f, dict):
            raise CommandError("key: $.schema.fields: unexpected type")
        if "field" not in f:
            raise CommandError("key: $.schema.fields: missing field name")
        name = f["field"]
        if not isinstance(name, str):
            raise CommandError("key: $.schema.fields: field name has unexpected type")
        primary_key[name] = position
    return primary_key


def _after_schema(ce: Event) -> list[Any]:
    assert ce.value is not None
    schema = ce.value.schema
    if schema is None or schema.fields is None:
        raise CommandError("value: $.schema.fields not found")
    after = next(
        (f for f in schema.fields if isinstance(f, dict) and f.get("field") == "after"),
        None,
    )
    if after is None:
        raise CommandError('value: $.schema.fields: "after" not found')
    fields = after.get("fields")
    if fields is None:
        raise CommandError('value: $.schema.fields: "fields" not found')
    if not isinstance(fields, list):
        raise CommandError('value: $.schema.fields: "fields" not expected type')
    return fields


def _build_column(m: Any, field_data: dict[str, Any], primary_key: dict[str, int]) -> CommandColumn:
    if not isinstance(m, dict):
        raise CommandError('value: $.schema.fields: "fields" not expected type')
    if "field" not in m:
        raise CommandError('value: $.schema.fields: "field" not found')
    name = m["field"]
    if not isinstance(name, str):
        raise CommandError('value: $.schema.fields: "field" not expected type')
    if "type" not in m:
        raise CommandError('value: $.schema.fields: "type" not found')
    ftype = m["type"]
    if not isinstance(ftype, str):
        raise CommandError('value: $.schema.fields: "type" not expected data type')
    semtype = ""
    if "name" in m:
        semtype = m["name"]
        if not isinstance(semtype, str):
            raise CommandError('value: $.schema.fields: "name" not expected data type')

    col = CommandColumn(name=name)
    try:
        col.dtype = convert_data_type(ftype, semtype)
    except ConversionError as e:
        raise CommandError(f'value: $.schema.fields: "type": {e}') from e
    col.data = field_data.get(name)
    if col.dtype in (DataType.TEXT, DataType.JSON) and col.data == _UNAVAILABLE_VALUE:
        # Large TOAST-stored values that were not modified are left out of update events.
        col.data = None
        col.unavailable = True
    if col.dtype == DataType.NUMERIC and col.data is not None:
        try:
            col.data = decode_numeric_bytes(m, col.data, semtype)
        except ConversionError as e:
            raise CommandError(f"decoding numeric bytes: {e}") from e
    try:
        col.sql_data = data_to_sql_data(col.data, col.dtype, semtype)
    except ConversionError as e:
        raise CommandError(f'value: $.payload.after: "{name}": unknown type: {e}') from e
    try:
        col.dtype_size = convert_type_size(ftype, col.dtype)
    except ConversionError as e:
        raise CommandError(f'value: $.payload.after: "{name}": unknown type size: {e}') from e
    col.primary_key = primary_key.get(name, 0)
    return col


def extract_columns(dedup: MessageSet, ce: Event) -> list[CommandColumn] | None:
    """Build the columns of a merge command; None if the event has no primary key."""
    if ce.value is None or ce.value.payload is None or ce.value.payload.after is None:
        raise CommandError("value: $.payload.after not found")
    field_data = ce.value.payload.after
    fields = _after_schema(ce)
    primary_key = extract_primary_key(dedup, ce)
    if primary_key is None:
        return None
    return [_build_column(m, field_data, primary_key) for m in fields]


def _source_timestamp(ts_ms: float) -> str:
    frac, whole = math.modf(ts_ms / 1000)
    total = int(whole) * 1_000_000_000 + int(frac * 1_000_000_000)
    seconds, nanos = divmod(total, 1_000_000_000)
    dt = _EPOCH + timedelta(seconds=seconds)
    return (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}.{nanos:09d}Z"
    )


def _match_any(patterns: Iterable[re.Pattern[str]], s: str) -> bool:
    return any(p.search(s) for p in patterns)


def _delete_columns(dedup: MessageSet, ce: Event) -> list[CommandColumn] | None:
    key = ce.key
    if key is None:
        _primary_key_not_defined(dedup, ce.topic)
        return None
    if key.schema is None:
        raise CommandError(f"delete: missing event key schema: {key}")
    if key.schema.fields is None:
        raise CommandError(f"delete: missing event key schema fields: {key}")
    if key.payload is None:
        raise CommandError(f"delete: missing event key payload: {key}")
    columns = []
    for position, m in enumerate(key.schema.fields, start=1):
        m = m or {}
        attr = m.get("field")
        if not isinstance(attr, str):
            raise CommandError(f"delete: unexpected type: key schema field: {attr}")
        semtype = m.get("name")
        if semtype is None:
            semtype = ""
        elif not isinstance(semtype, str):
            raise CommandError(f"delete: unexpected type: key schema name: {semtype}")
        dt = m.get("type")
        if not isinstance(dt, str):
            raise CommandError(f"delete: unexpected type: key schema type: {dt}")
        try:
            dtype = convert_data_type(dt, semtype)
        except ConversionError:
            raise CommandError(f"delete: unknown key schema type: {dt}") from None
        data = key.payload.get(attr)
        try:
            sql_data = data_to_sql_data(data, dtype, semtype)
        except ConversionError as e:
            raise CommandError(f"delete: unknown type: {e}") from e
        try:
            size = convert_type_size(dt, dtype)
        except ConversionError:
            raise CommandError(f"delete: unknown type size: {data}") from None
        columns.append(
            CommandColumn(
                name=attr,
                dtype=dtype,
                dtype_size=size,
                data=data,
                sql_data=sql_data,
                primary_key=position,
            )
        )
    return columns


def new_command(
    dedup: MessageSet,
    ce: Event | None,
    schema_pass_filter: Sequence[re.Pattern[str]],
    schema_stop_filter: Sequence[re.Pattern[str]],
    table_stop_filter: Sequence[re.Pattern[str]],
    trim_schema_prefix: str,
    add_schema_prefix: str,
    reshare_tenants: Sequence[str] | None = None,
) -> tuple[Command | None, bool]:
    """Build a command from a change event.

    Returns the command (None if the event is filtered out or carries nothing
    to apply) and whether the event is part of a snapshot.
    """
    if ce is None:
        raise CommandError("missing change event")
    if ce.value is None or ce.value.payload is None:
        name, key = "", None
        if ce.key is not None:
            if ce.key.schema is not None:
                name = ce.key.schema.name or ""
            key = ce.key.payload
        logger.debug(
            "possible tombstone event: missing value payload in change event: schema=%r, key=%s",
            name,
            key,
        )
        return None, False
    payload = ce.value.payload
    if payload.op is None:
        raise CommandError("missing value payload op")
    op = _OPS.get(payload.op)
    if op is None:
        raise CommandError(f'unknown op value in change event: "{payload.op}"')
    cmd = Command(op=op)
    source = payload.source
    if source is None:
        raise CommandError(f"missing value payload source: {payload}")
    if source.ts_ms is None:
        raise CommandError(f"missing value payload source timestamp: {source}")
    cmd.source_timestamp = _source_timestamp(source.ts_ms)

    if source.schema is not None:
        schema = source.schema
        if schema_pass_filter and not _match_any(schema_pass_filter, schema):
            logger.debug("filter: reject: %s", schema)
            return None, False
        if schema_stop_filter and _match_any(schema_stop_filter, schema):
            logger.debug("filter: reject: %s", schema)
            return None, False
        if trim_schema_prefix and schema.startswith(trim_schema_prefix):
            schema = schema[len(trim_schema_prefix):]
        schema = schema.removeprefix("mod_").removesuffix("_storage")
        schema = schema.replace("_mod_", "_", 1)
        cmd.origin, schema = extract_origin(reshare_tenants, schema)
        cmd.schema_name = add_schema_prefix + schema

    if source.table is not None:
        table = source.table
        schema_table = (source.schema or "") + "." + table
        if table_stop_filter and _match_any(table_stop_filter, schema_table):
            logger.debug("filter: reject: %s", table)
            return None, False
        cmd.table_name = table

    snapshot = source.snapshot == "true"
    if op == Operation.TRUNCATE:
        return cmd, snapshot
    if op == Operation.DELETE:
        columns = _delete_columns(dedup, ce)
        if columns is None:
            return None, False
        cmd.column = columns
        return cmd, snapshot
    columns = extract_columns(dedup, ce)
    if not columns:
        return None, False
    cmd.column = columns
    return cmd, snapshot


def extract_origin(prefixes: Sequence[str] | None, schema: str) -> tuple[str, str]:
    """Split a leading ``<origin>_`` off schema if origin is one of prefixes."""
    for prefix in prefixes or ():
        marker = prefix + "_"
        if schema.startswith(marker):
            return prefix, schema[len(marker):]
    return "", schema


def primary_key_columns(columns: Iterable[CommandColumn]) -> list[CommandColumn]:
    """Return copies of the primary key columns, ordered by key position."""
    keys = [replace(c) for c in columns if c.primary_key != 0]
    keys.sort(key=lambda c: c.primary_key)
    return keys