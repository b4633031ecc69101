"""Helpers for transforming MARC records read from the database."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from .marc import Marc, MarcError, transform


@dataclass(frozen=True)
class FieldSF:
    """A MARC field tag paired with a subfield code."""

    field: str
    sf: str


@dataclass
class TransformedRecord:
    """A source record after transformation into MARC rows."""

    srs_id: str
    matched_id: str
    instance_hrid: str
    instance_id: str
    mrecs: list[Marc] = field(default_factory=list)


def md5_expression(srs_marc_attr: str) -> str:
    """Return the SQL expression used to checksum a source record."""
    return (
        "md5(coalesce(r.external_hrid::text, '') || coalesce(r.matched_id::text, '') || "
        f"coalesce(r.state::text, '') || coalesce(m.{srs_marc_attr}::text, ''))"
    )


def _null(s: str | None) -> str:
    return "(null)" if s is None else s


def transform_record(
    srs_id: str | None,
    matched_id: str | None,
    instance_hrid: str | None,
    state: str | None,
    data: str | None,
    printerr: Callable[[str], None],
    verbose: int,
) -> TransformedRecord | None:
    """Transform one source record; return None if it is skipped."""
    if srs_id is None or not srs_id.strip() or data is None or not data.strip():
        printerr(f"skipping record: id={_null(srs_id)} data={_null(data)}")
        return None
    try:
        mrecs, instance_id = transform(data, state or "")
    except MarcError as e:
        printerr(f"skipping record: {srs_id}: {e}")
        return None
    if verbose >= 2 and mrecs:
        printerr(f"updating: id={srs_id}")
    return TransformedRecord(
        srs_id=srs_id,
        matched_id=matched_id or "",
        instance_hrid=instance_hrid or "",
        instance_id=instance_id,
        mrecs=mrecs,
    )


def get_all_field_names() -> list[str]:
    """Return every three-digit MARC field tag, from 000 to 999."""
    return [f"{i:03d}" for i in range(1000)]


def escape_sf_string(sf: str) -> str:
    """Escape a subfield code for use in an SQL string literal."""
    return "''" if sf == "'" else sf


def elapsed_time(start: float) -> str:
    """Format the hours elapsed since start, a time.monotonic() value."""
    hours = (time.monotonic() - start) / 3600
    return f"[{hours:.4f} h]"