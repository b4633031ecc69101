"""Change events decoded from messages in Debezium's JSON format."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any


class ChangeEventError(Exception):
    """A message could not be decoded as a change event."""


@dataclass
class Message:
    """A message read from a stream: raw key and value bytes and the topic."""

    key: bytes | None = None
    value: bytes | None = None
    topic: str | None = None


def _go_format(v: Any) -> str:
    if v is None:
        return "<nil>"
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float):
        if math.isinf(v):
            return "+Inf" if v > 0 else "-Inf"
        if math.isnan(v):
            return "NaN"
        if v.is_integer() and abs(v) < 1e21:
            return str(int(v))
        return repr(v)
    if isinstance(v, dict):
        return "map[" + " ".join(f"{k}:{_go_format(v[k])}" for k in sorted(v)) + "]"
    if isinstance(v, list):
        return "[" + " ".join(_go_format(x) for x in v) + "]"
    return str(v)


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


def _floats(v: Any) -> Any:
    """Represent every JSON number in a free-form value as a float."""
    if isinstance(v, bool):
        return v
    if isinstance(v, int):
        return float(v)
    if isinstance(v, dict):
        return {k: _floats(x) for k, x in v.items()}
    if isinstance(v, list):
        return [_floats(x) for x in v]
    return v


def _object(v: Any, what: str) -> dict[str, Any] | None:
    if v is None:
        return None
    if not isinstance(v, dict):
        raise ChangeEventError(f"{what}: expected a JSON object")
    return v


def _string(obj: dict[str, Any], key: str) -> str | None:
    v = obj.get(key)
    if v is not None and not isinstance(v, str):
        raise ChangeEventError(f"{key}: expected a string")
    return v


def _boolean(obj: dict[str, Any], key: str) -> bool | None:
    v = obj.get(key)
    if v is not None and not isinstance(v, bool):
        raise ChangeEventError(f"{key}: expected a boolean")
    return v


def _number(obj: dict[str, Any], key: str) -> float | None:
    v = obj.get(key)
    if v is None:
        return None
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ChangeEventError(f"{key}: expected a number")
    return float(v)


def _integer(obj: dict[str, Any], key: str) -> int | None:
    v = obj.get(key)
    if v is None:
        return None
    if isinstance(v, bool) or not isinstance(v, int):
        raise ChangeEventError(f"{key}: expected an integer")
    return v


def _map(obj: dict[str, Any], key: str) -> dict[str, Any] | None:
    v = _object(obj.get(key), key)
    return None if v is None else _floats(v)


def _fields(obj: dict[str, Any]) -> list[dict[str, Any] | None] | None:
    v = obj.get("fields")
    if v is None:
        return None
    if not isinstance(v, list):
        raise ChangeEventError("fields: expected an array")
    return [None if f is None else _floats(_object(f, "fields")) for f in v]


@dataclass
class EventKeySchema:
    type: str | None = None
    fields: list[dict[str, Any] | None] | None = None
    optional: bool | None = None
    name: str | None = None

    def __str__(self) -> str:
        tp = _quote(self.type) if self.type is not None else ""
        fields = _go_format(self.fields) if self.fields is not None else ""
        optional = _go_format(self.optional) if self.optional is not None else ""
        name = _quote(self.name) if self.name is not None else ""
        return f"type={tp} fields={fields} optional={optional} name={name}"


@dataclass
class EventKey:
    schema: EventKeySchema | None = None
    payload: dict[str, Any] | None = None

    def __str__(self) -> str:
        schema = str(self.schema) if self.schema is not None else ""
        payload = _go_format(self.payload) if self.payload is not None else ""
        return f"schema={{{schema}}} payload={{{payload}}}"


@dataclass
class EventPayloadSource:
    version: str | None = None
    connector: str | None = None
    name: str | None = None
    ts_ms: float | None = None
    snapshot: str | None = None
    db: str | None = None
    schema: str | None = None
    table: str | None = None


@dataclass
class EventValueSchema:
    type: str | None = None
    fields: list[dict[str, Any] | None] | None = None
    optional: bool | None = None
    name: str | None = None


@dataclass
class EventValuePayload:
    before: Any = None
    after: dict[str, Any] | None = None
    source: EventPayloadSource | None = None
    op: str | None = None
    ts_ms: int | None = None
    transaction: Any = None


@dataclass
class EventValue:
    schema: EventValueSchema | None = None
    payload: EventValuePayload | None = None


@dataclass
class Event:
    key: EventKey | None = None
    value: EventValue | None = None
    topic: str | None = None

    def __str__(self) -> str:
        key = str(self.key) if self.key is not None else ""
        value = repr(self.value) if self.value is not None else ""
        return f"key = {key}\nvalue = {value}\nmessage =\n"


def _load(data: bytes | str) -> Any:
    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ChangeEventError(str(e)) from e


def _schema_parts(obj: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": _string(obj, "type"),
        "fields": _fields(obj),
        "optional": _boolean(obj, "optional"),
        "name": _string(obj, "name"),
    }


def parse_event_key(data: bytes | str) -> EventKey | None:
    """Decode the JSON key of a change event; JSON null gives None."""
    obj = _object(_load(data), "key")
    if obj is None:
        return None
    schema = _object(obj.get("schema"), "schema")
    return EventKey(
        schema=None if schema is None else EventKeySchema(**_schema_parts(schema)),
        payload=_map(obj, "payload"),
    )


def _parse_source(obj: dict[str, Any] | None) -> EventPayloadSource | None:
    if obj is None:
        return None
    return EventPayloadSource(
        version=_string(obj, "version"),
        connector=_string(obj, "connector"),
        name=_string(obj, "name"),
        ts_ms=_number(obj, "ts_ms"),
        snapshot=_string(obj, "snapshot"),
        db=_string(obj, "db"),
        schema=_string(obj, "schema"),
        table=_string(obj, "table"),
    )


def parse_event_value(data: bytes | str) -> EventValue | None:
    """Decode the JSON value of a change event; JSON null gives None."""
    obj = _object(_load(data), "value")
    if obj is None:
        return None
    schema = _object(obj.get("schema"), "schema")
    payload = _object(obj.get("payload"), "payload")
    value_payload = None
    if payload is not None:
        value_payload = EventValuePayload(
            before=payload.get("before"),
            after=_map(payload, "after"),
            source=_parse_source(_object(payload.get("source"), "source")),
            op=_string(payload, "op"),
            ts_ms=_integer(payload, "ts_ms"),
            transaction=payload.get("transaction"),
        )
    return EventValue(
        schema=None if schema is None else EventValueSchema(**_schema_parts(schema)),
        payload=value_payload,
    )


def _describe(message: Message) -> str:
    def text(b: bytes | None) -> str:
        return "" if b is None else b.decode("utf-8", errors="replace")

    return f"topic = {message.topic or ''}\nkey = {text(message.key)}\nvalue = {text(message.value)}"


def new_event(message: Message | None) -> Event:
    """Decode a stream message into a change event."""
    if message is None:
        raise ChangeEventError("creating change event: message is nil")
    event = Event(topic=message.topic)
    if message.key:
        try:
            event.key = parse_event_key(message.key)
        except ChangeEventError as e:
            raise ChangeEventError(f"change event key: {e}\n{_describe(message)}") from e
    if message.value:
        try:
            event.value = parse_event_value(message.value)
        except ChangeEventError as e:
            raise ChangeEventError(f"change event value: {e}\n{_describe(message)}") from e
    return event