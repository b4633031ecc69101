"""Data types of change-event columns and their conversion to SQL values."""

from __future__ import annotations

import base64
import binascii
import logging
import math
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import IntEnum
from typing import Any

logger = logging.getLogger(__name__)

_DECIMAL_SEMTYPE = "org.apache.kafka.connect.data.Decimal"
_VARIABLE_DECIMAL_SEMTYPE = "io.debezium.data.VariableScaleDecimal"

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ConversionError(ValueError):
    """A value or type could not be converted."""


class Operation(IntEnum):
    """The kind of change a command applies."""

    MERGE = 0
    DELETE = 1
    TRUNCATE = 2

    def __str__(self) -> str:
        return self.name.lower()


_DATA_TYPE_NAMES = {
    1: "BooleanType",
    2: "DateType",
    3: "FloatType",
    4: "IntegerType",
    5: "JSONType",
    6: "NumericType",
    7: "TimeType",
    8: "TimestampType",
    9: "TimestamptzType",
    10: "TimetzType",
    11: "UUIDType",
    12: "TextType",
}


class DataType(IntEnum):
    """Column data types known to the server."""

    UNKNOWN = 0
    BOOLEAN = 1
    DATE = 2
    FLOAT = 3
    INTEGER = 4
    JSON = 5
    NUMERIC = 6
    TIME = 7
    TIMESTAMP = 8
    TIMESTAMPTZ = 9
    TIMETZ = 10
    UUID = 11
    TEXT = 12

    def __str__(self) -> str:
        name = _DATA_TYPE_NAMES.get(int(self))
        if name is None:
            logger.error("data type to string: unknown data type: %d", int(self))
            return "(unknown type)"
        return name


_SQL_TYPES: dict[str, tuple[DataType, int]] = {
    "text": (DataType.TEXT, 0),
    "varchar": (DataType.TEXT, 0),
    "character varying": (DataType.TEXT, 0),
    "smallint": (DataType.INTEGER, 2),
    "integer": (DataType.INTEGER, 4),
    "bigint": (DataType.INTEGER, 8),
    "real": (DataType.FLOAT, 4),
    "double precision": (DataType.FLOAT, 8),
    "numeric": (DataType.NUMERIC, 0),
    "boolean": (DataType.BOOLEAN, 0),
    "date": (DataType.DATE, 0),
    "time without time zone": (DataType.TIME, 0),
    "time": (DataType.TIME, 0),
    "time with time zone": (DataType.TIMETZ, 0),
    "timetz": (DataType.TIMETZ, 0),
    "timestamp without time zone": (DataType.TIMESTAMP, 0),
    "timestamp": (DataType.TIMESTAMP, 0),
    "timestamp with time zone": (DataType.TIMESTAMPTZ, 0),
    "timestamptz": (DataType.TIMESTAMPTZ, 0),
    "uuid": (DataType.UUID, 0),
    "jsonb": (DataType.JSON, 0),
}


def make_data_type(data_type: str) -> tuple[DataType, int]:
    """Map a database type name to a data type and type size."""
    result = _SQL_TYPES.get(data_type.lower())
    if result is None:
        logger.error("make data type new: unknown data type: %s", data_type)
        return DataType.UNKNOWN, 0
    return result


_SIMPLE_SQL = {
    DataType.TEXT: "text",
    DataType.NUMERIC: "numeric",
    DataType.BOOLEAN: "boolean",
    DataType.DATE: "date",
    DataType.TIME: "time without time zone",
    DataType.TIMETZ: "time with time zone",
    DataType.TIMESTAMP: "timestamp without time zone",
    DataType.TIMESTAMPTZ: "timestamp with time zone",
    DataType.UUID: "uuid",
    DataType.JSON: "jsonb",
}

_SIZED_SQL = {
    DataType.INTEGER: {2: "smallint", 4: "integer", 8: "bigint"},
    DataType.FLOAT: {4: "real", 8: "double precision"},
}


def data_type_to_sql(dtype: DataType, type_size: int) -> str:
    """Convert a data type and type size to a database type name."""
    if dtype in _SIZED_SQL:
        return _SIZED_SQL[dtype].get(type_size, "(unknown)")
    return _SIMPLE_SQL.get(dtype, "(unknown)")


def _unhandled(coltype: str, semtype: str) -> ConversionError:
    return ConversionError(f"convert data type: unhandled type: type={coltype}, semtype={semtype}")


def convert_data_type(coltype: str, semtype: str) -> DataType:
    """Convert a change event's literal and semantic type to a data type."""
    if coltype == "boolean":
        return DataType.BOOLEAN
    if coltype in ("int8", "int16"):
        return DataType.INTEGER
    if coltype == "int32":
        if semtype.endswith(".time.Date"):
            return DataType.DATE
        if semtype.endswith(".time.Time"):
            return DataType.TIME
        return DataType.INTEGER
    if coltype == "int64":
        if semtype.endswith(".time.MicroTime"):
            return DataType.TIME
        if semtype.endswith((".time.Timestamp", ".time.MicroTimestamp")):
            return DataType.TIMESTAMP
        return DataType.INTEGER
    if coltype in ("float", "double", "float32", "float64"):
        return DataType.FLOAT
    if coltype == "string":
        if semtype.endswith(".data.Uuid"):
            return DataType.UUID
        if semtype.endswith(".data.Json"):
            return DataType.JSON
        if semtype.endswith(".time.ZonedTime"):
            return DataType.TIMETZ
        if semtype.endswith(".time.ZonedTimestamp"):
            return DataType.TIMESTAMPTZ
        return DataType.TEXT
    if coltype == "bytes":
        if semtype == _DECIMAL_SEMTYPE:
            return DataType.NUMERIC
        raise _unhandled(coltype, semtype)
    if coltype == "struct":
        if semtype == _VARIABLE_DECIMAL_SEMTYPE:
            return DataType.NUMERIC
        raise _unhandled(coltype, semtype)
    raise ConversionError(f"convert data type: unknown data type: {coltype}")


_INTEGER_SIZES = {"int8": 1, "int16": 2, "int32": 4, "int64": 8}
_FLOAT_SIZES = {"float": 4, "float32": 4, "double": 8, "float64": 8}
_UNSIZED = frozenset(
    {
        DataType.TEXT,
        DataType.NUMERIC,
        DataType.BOOLEAN,
        DataType.DATE,
        DataType.TIME,
        DataType.TIMETZ,
        DataType.TIMESTAMP,
        DataType.TIMESTAMPTZ,
        DataType.UUID,
        DataType.JSON,
    }
)


def convert_type_size(coltype: str, datatype: DataType) -> int:
    """Return the type size implied by a change event's literal type."""
    if datatype == DataType.INTEGER:
        try:
            return _INTEGER_SIZES[coltype]
        except KeyError:
            raise ConversionError(f'internal error: unexpected integer type "{coltype}"') from None
    if datatype == DataType.FLOAT:
        try:
            return _FLOAT_SIZES[coltype]
        except KeyError:
            raise ConversionError(f'internal error: unexpected float type "{coltype}"') from None
    if datatype in _UNSIZED:
        return 0
    raise ConversionError(f"convert type size: unknown data type: {DataType(datatype)!s}")


def _format_g(v: float) -> str:
    """Format a float in the shortest %g form."""
    if math.isnan(v):
        return "NaN"
    if math.isinf(v):
        return "+Inf" if v > 0 else "-Inf"
    sign = "-" if math.copysign(1.0, v) < 0 else ""
    if v == 0:
        return sign + "0"
    t = Decimal(repr(abs(v))).normalize().as_tuple()
    digits = "".join(map(str, t.digits))
    dp = len(digits) + t.exponent
    exp = dp - 1
    if exp < -4 or exp >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        return f"{sign}{mantissa}e{'-' if exp < 0 else '+'}{abs(exp):02d}"
    if dp <= 0:
        return f"{sign}0.{'0' * -dp}{digits}"
    if dp >= len(digits):
        return sign + digits + "0" * (dp - len(digits))
    return f"{sign}{digits[:dp]}.{digits[dp:]}"


def _is_number(data: Any) -> bool:
    return isinstance(data, (int, float)) and not isinstance(data, bool)


def _type_error(datatype: DataType, data: Any) -> ConversionError:
    return ConversionError(f'{DataType(datatype)!s} data "{data}" has type {type(data).__name__}')


def _from_unix(value: float, per_second: int) -> datetime:
    frac, whole = math.modf(value / per_second)
    nanos = int(whole) * 1_000_000_000 + int(frac * 1_000_000_000)
    return _EPOCH + timedelta(microseconds=nanos // 1000)


def _clock(dt: datetime) -> str:
    return f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}.{dt.microsecond:06d}"


def _date(dt: datetime) -> str:
    return f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"


def data_to_sql_data(data: Any, datatype: DataType, semtype: str) -> str | None:
    """Convert change-event data to a string ready for SQL encoding; None stays None."""
    if data is None:
        return None
    try:
        if datatype == DataType.BOOLEAN:
            if not isinstance(data, bool):
                raise _type_error(datatype, data)
            return "true" if data else "false"
        if datatype == DataType.INTEGER:
            if not _is_number(data):
                raise _type_error(datatype, data)
            return str(int(data))
        if datatype == DataType.FLOAT:
            if not _is_number(data):
                raise _type_error(datatype, data)
            return _format_g(float(data))
        if datatype == DataType.DATE:
            if not _is_number(data):
                raise _type_error(datatype, data)
            dt = _EPOCH + timedelta(seconds=int(data * 86400))
            return _date(dt) + "T00:00:00Z"
        if datatype == DataType.TIME:
            if not _is_number(data):
                raise _type_error(datatype, data)
            if semtype.endswith(".time.Time"):
                return fixup_sql_time(_clock(_from_unix(data, 1000)))
            if semtype.endswith(".time.MicroTime"):
                return fixup_sql_time(_clock(_from_unix(data, 1_000_000)))
        elif datatype == DataType.TIMESTAMP:
            if not _is_number(data):
                raise _type_error(datatype, data)
            if semtype.endswith(".time.Timestamp"):
                dt = _from_unix(data, 1000)
                return fixup_sql_time(_date(dt) + " " + _clock(dt))
            if semtype.endswith(".time.MicroTimestamp"):
                dt = _from_unix(data, 1_000_000)
                return fixup_sql_time(_date(dt) + " " + _clock(dt))
        elif datatype in (
            DataType.TEXT,
            DataType.NUMERIC,
            DataType.UUID,
            DataType.JSON,
            DataType.TIMETZ,
            DataType.TIMESTAMPTZ,
        ):
            if not isinstance(data, str):
                raise _type_error(datatype, data)
            return data
    except (OverflowError, ValueError) as e:
        if isinstance(e, ConversionError):
            raise
        raise ConversionError(f'{DataType(datatype)!s} data "{data}" out of range') from e
    raise _type_error(datatype, data)


def parameter_scale(field_map: dict[str, Any]) -> int:
    """Read the numeric scale from a field's "parameters" object."""
    if "parameters" not in field_map:
        raise ConversionError(f"parameter object not found: {field_map}")
    params = field_map["parameters"]
    if not isinstance(params, dict):
        raise ConversionError(f"expected object: parameters field: {params}")
    if "scale" not in params:
        raise ConversionError(f"scale parameter not found: {params}")
    s = params["scale"]
    if not isinstance(s, str):
        raise ConversionError(f"unexpected data type: scale parameter: {s}")
    if not re.fullmatch(r"[+-]?[0-9]+", s, re.ASCII):
        raise ConversionError(f'parse error: scale parameter: "{s}"')
    scale = int(s)
    if not _INT32_MIN <= scale <= _INT32_MAX:
        raise ConversionError(f'parse error: scale parameter: "{s}"')
    return scale


def struct_scale(data: Any) -> tuple[int, str]:
    """Read the scale and encoded value from a variable-scale decimal struct."""
    if not isinstance(data, dict):
        raise ConversionError(f"expected object in payload after: {data}")
    if "scale" not in data:
        raise ConversionError(f"scale not found in payload after: {data}")
    s = data["scale"]
    if not _is_number(s):
        raise ConversionError(f"unexpected data type in scale: {type(s).__name__}: {data}")
    sf = float(s)
    if not sf.is_integer() or not _INT32_MIN <= sf <= _INT32_MAX:
        raise ConversionError(f"scale not int32: {s}: {data}")
    if "value" not in data:
        raise ConversionError(f"value not found in payload after: {data}")
    value = data["value"]
    if not isinstance(value, str):
        raise ConversionError(f"unexpected data type in value: {type(value).__name__}: {data}")
    return int(sf), value


def decode_numeric_bytes(field_map: dict[str, Any], data: Any, semtype: str) -> str:
    """Decode a base64 big-endian unscaled decimal into fixed-point text."""
    if data is None:
        raise ConversionError("decoding nil value")
    if semtype == _DECIMAL_SEMTYPE:
        try:
            scale = parameter_scale(field_map)
        except ConversionError as e:
            raise ConversionError(f"reading numeric scale from parameters: {e}") from e
        if not isinstance(data, str):
            raise ConversionError(f'data "{data}" has type {type(data).__name__}')
        valuestr = data
    elif semtype == _VARIABLE_DECIMAL_SEMTYPE:
        try:
            scale, valuestr = struct_scale(data)
        except ConversionError as e:
            raise ConversionError(f"reading numeric scale from struct: {e}") from e
    else:
        raise ConversionError(f"unsupported numeric type: {semtype}: {field_map}")
    try:
        raw = base64.b64decode(valuestr, validate=True)
    except (binascii.Error, ValueError):
        raise ConversionError(f'unable to decode numeric bytes: "{valuestr}"') from None
    unscaled = int.from_bytes(raw, "big", signed=False)
    if scale <= 0:
        return str(unscaled * 10 ** (-scale))
    digits = str(unscaled).rjust(scale + 1, "0")
    return f"{digits[:-scale]}.{digits[-scale:]}"


def trim_fractional_zeros(s: str) -> str:
    """Remove trailing zeros of a fractional part, and the point if nothing remains."""
    head, point, fraction = s.partition(".")
    if not point:
        return s
    fraction = fraction.rstrip("0")
    return f"{head}.{fraction}" if fraction else head


def fixup_sql_time(t: str) -> str:
    """Trim fractional zeros, put "T" between date and time, and append "Z"."""
    return trim_fractional_zeros(t).replace(" ", "T", 1) + "Z"


_TIMESTAMPTZ_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|(\+\d+(:\d+)?))?", re.ASCII
)
_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?", re.ASCII)


def infer_type_from_string(data: str) -> DataType:
    """Infer a timestamp type from a string's form, or text otherwise."""
    if _TIMESTAMPTZ_RE.fullmatch(data):
        return DataType.TIMESTAMPTZ
    if _TIMESTAMP_RE.fullmatch(data):
        return DataType.TIMESTAMP
    return DataType.TEXT