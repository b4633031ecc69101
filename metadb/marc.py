"""Transformation of MARC records in JSON form into rows of a table."""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass
from typing import Any

from .uuidutil import NIL_UUID, is_uuid


class MarcError(ValueError):
    """A MARC record could not be parsed."""


@dataclass(frozen=True)
class Marc:
    """A single row of data extracted from part of a MARC record."""

    line: int
    field: str
    ind1: str
    ind2: str
    ord: int
    sf: str
    content: str


def transform(marcjson: str, state: str) -> tuple[list[Marc], str]:
    """Convert a MARC record in JSON form into rows and its instance identifier.

    Only a current record is transformed: its state must be "ACTUAL" and it
    must have content in 999 ff $i.  For a record that is not current, an
    empty list and the nil UUID are returned.
    """
    if state != "ACTUAL":
        return [], NIL_UUID
    try:
        doc = json.loads(marcjson)
    except (json.JSONDecodeError, TypeError) as e:
        raise MarcError(str(e)) from e
    if not isinstance(doc, dict):
        raise MarcError("parsing error")
    leader = _leader(doc)
    if "fields" not in doc:
        raise MarcError('parsing: "fields" not found')
    fields = doc["fields"]
    if not isinstance(fields, list):
        raise MarcError('parsing: "fields" is not an array')

    mrecs: list[Marc] = []
    counts: Counter[str] = Counter()
    for element in fields:
        if not isinstance(element, dict):
            raise MarcError('parsing: "fields" element is not an object')
        for tag, value in element.items():
            counts[tag] += 1
            ord_ = counts[tag]
            if isinstance(value, str):
                if tag == "001":
                    # The leader is written as 000 just before 001.
                    mrecs.append(Marc(len(mrecs) + 1, "000", "", "", ord_, "", leader))
                mrecs.append(Marc(len(mrecs) + 1, tag, "", "", ord_, "", value))
            elif isinstance(value, dict):
                try:
                    mrecs.extend(_subfields(tag, ord_, value, len(mrecs) + 1))
                except MarcError as e:
                    raise MarcError(f"parsing: {e}") from e
            else:
                raise MarcError(f'parsing: unknown data type in field "{tag}"')

    try:
        instance_id = get_instance_id(mrecs)
    except MarcError as e:
        raise MarcError(f"parsing: {e}") from e
    if not instance_id:
        return [], NIL_UUID
    return mrecs, instance_id


def _leader(doc: dict[str, Any]) -> str:
    if "leader" not in doc:
        raise MarcError('parsing: "leader" not found')
    leader = doc["leader"]
    if not isinstance(leader, str):
        raise MarcError('parsing: "leader" is not a string')
    return leader


def _indicator(sm: dict[str, Any], name: str) -> str:
    if name not in sm:
        raise MarcError(f'"{name}" not found')
    value = sm[name]
    if not isinstance(value, str):
        raise MarcError(f'"{name}" wrong type')
    return value


def _subfields(field: str, ord_: int, sm: dict[str, Any], first_line: int) -> list[Marc]:
    ind1 = _indicator(sm, "ind1")
    ind2 = _indicator(sm, "ind2")
    if "subfields" not in sm:
        raise MarcError('"subfields" not found')
    subfields = sm["subfields"]
    if not isinstance(subfields, list):
        raise MarcError('"subfields" is not an array')
    rows: list[Marc] = []
    for element in subfields:
        if not isinstance(element, dict):
            raise MarcError('"subfields" element is not an object')
        for code, value in element.items():
            if not isinstance(value, str):
                raise MarcError("subfield value is not a string")
            rows.append(Marc(first_line + len(rows), field, ind1, ind2, ord_, code, value))
    return rows


def get_instance_id(mrecs: list[Marc]) -> str:
    """Return the instance identifier found in 999 ff $i, or "" if there is none."""
    found = False
    instance_id = ""
    for r in mrecs:
        if r.field == "999" and r.sf == "i" and r.ind1 == "f" and r.ind2 == "f" and r.content:
            if found:
                raise MarcError("multiple values for 999 ff $i")
            found = True
            instance_id = r.content.strip()
    if instance_id and not is_uuid(instance_id):
        raise MarcError("non-UUID value in 999 ff $i")
    return instance_id