import pytest

from metadb.datatypes import (
    ConversionError,
    DataType,
    Operation,
    convert_data_type,
    convert_type_size,
    data_to_sql_data,
    data_type_to_sql,
    decode_numeric_bytes,
    fixup_sql_time,
    infer_type_from_string,
    make_data_type,
    parameter_scale,
    struct_scale,
    trim_fractional_zeros,
)

DECIMAL = "org.apache.kafka.connect.data.Decimal"
VARDECIMAL = "io.debezium.data.VariableScaleDecimal"


@pytest.mark.parametrize(
    "given, want",
    [
        ("2022-01-11T14:07:44.400", "2022-01-11T14:07:44.4"),
        ("2022-01-11T14:07:44.000", "2022-01-11T14:07:44"),
        ("2022-01-11T14:07:44", "2022-01-11T14:07:44"),
        ("2022-01-11T14:07:00", "2022-01-11T14:07:00"),
        ("2022-01-11T14:07:00.000", "2022-01-11T14:07:00"),
        ("", ""),
    ],
)
def test_trim_fractional_zeros(given, want):
    assert trim_fractional_zeros(given) == want


def test_fixup_sql_time():
    assert fixup_sql_time("2022-01-11 14:07:44.400000") == "2022-01-11T14:07:44.4Z"
    assert fixup_sql_time("14:07:44.000000") == "14:07:44Z"


def test_operation_str():
    assert [str(Operation(value)) for value in range(3)] == ["merge", "delete", "truncate"]


def test_data_type_str():
    assert str(make_data_type("uuid")[0]) == "UUIDType"
    assert str(make_data_type("timestamptz")[0]) == "TimestamptzType"
    assert str(make_data_type("money")[0]) == "(unknown type)"


@pytest.mark.parametrize(
    "name, want",
    [
        ("character varying", (DataType.TEXT, 0)),
        ("SMALLINT", (DataType.INTEGER, 2)),
        ("bigint", (DataType.INTEGER, 8)),
        ("double precision", (DataType.FLOAT, 8)),
        ("timestamptz", (DataType.TIMESTAMPTZ, 0)),
        ("jsonb", (DataType.JSON, 0)),
        ("money", (DataType.UNKNOWN, 0)),
    ],
)
def test_make_data_type(name, want):
    assert make_data_type(name) == want


def test_data_type_to_sql():
    assert data_type_to_sql(DataType.INTEGER, 4) == "integer"
    assert data_type_to_sql(DataType.INTEGER, 1) == "(unknown)"
    assert data_type_to_sql(DataType.FLOAT, 4) == "real"
    assert data_type_to_sql(DataType.TIMETZ, 0) == "time with time zone"
    assert data_type_to_sql(DataType.UNKNOWN, 0) == "(unknown)"


def test_make_and_to_sql_round_trip():
    for name in ["text", "smallint", "integer", "bigint", "real", "numeric", "uuid", "jsonb",
                 "time without time zone", "timestamp with time zone"]:
        assert data_type_to_sql(*make_data_type(name)) == name


@pytest.mark.parametrize(
    "coltype, semtype, want",
    [
        ("boolean", "", DataType.BOOLEAN),
        ("int16", "", DataType.INTEGER),
        ("int32", "io.debezium.time.Date", DataType.DATE),
        ("int32", "io.debezium.time.Time", DataType.TIME),
        ("int64", "io.debezium.time.MicroTime", DataType.TIME),
        ("int64", "io.debezium.time.MicroTimestamp", DataType.TIMESTAMP),
        ("int64", "", DataType.INTEGER),
        ("double", "", DataType.FLOAT),
        ("string", "io.debezium.data.Uuid", DataType.UUID),
        ("string", "io.debezium.data.Json", DataType.JSON),
        ("string", "io.debezium.time.ZonedTimestamp", DataType.TIMESTAMPTZ),
        ("string", "", DataType.TEXT),
        ("bytes", DECIMAL, DataType.NUMERIC),
        ("struct", VARDECIMAL, DataType.NUMERIC),
    ],
)
def test_convert_data_type(coltype, semtype, want):
    assert convert_data_type(coltype, semtype) == want


@pytest.mark.parametrize("coltype, semtype", [("bytes", "x"), ("struct", ""), ("array", "")])
def test_convert_data_type_errors(coltype, semtype):
    with pytest.raises(ConversionError):
        convert_data_type(coltype, semtype)


def test_convert_type_size():
    assert convert_type_size("int32", DataType.INTEGER) == 4
    assert convert_type_size("int8", DataType.INTEGER) == 1
    assert convert_type_size("double", DataType.FLOAT) == 8
    assert convert_type_size("string", DataType.TEXT) == 0
    with pytest.raises(ConversionError):
        convert_type_size("int128", DataType.INTEGER)
    with pytest.raises(ConversionError):
        convert_type_size("x", DataType.UNKNOWN)


@pytest.mark.parametrize(
    "data, dtype, semtype, want",
    [
        (None, DataType.TEXT, "", None),
        (True, DataType.BOOLEAN, "", "true"),
        (False, DataType.BOOLEAN, "", "false"),
        (42.0, DataType.INTEGER, "", "42"),
        (1.5, DataType.FLOAT, "", "1.5"),
        (123456.0, DataType.FLOAT, "", "123456"),
        (1e6, DataType.FLOAT, "", "1e+06"),
        (0.0001, DataType.FLOAT, "", "0.0001"),
        (0.00001, DataType.FLOAT, "", "1e-05"),
        (0.0, DataType.DATE, "io.debezium.time.Date", "1970-01-01T00:00:00Z"),
        (1.0, DataType.DATE, "io.debezium.time.Date", "1970-01-02T00:00:00Z"),
        (3723500.0, DataType.TIME, "io.debezium.time.Time", "01:02:03.5Z"),
        (1500000.0, DataType.TIME, "io.debezium.time.MicroTime", "00:00:01.5Z"),
        (0.0, DataType.TIMESTAMP, "io.debezium.time.Timestamp", "1970-01-01T00:00:00Z"),
        (1500000.0, DataType.TIMESTAMP, "io.debezium.time.MicroTimestamp", "1970-01-01T00:00:01.5Z"),
        ("abc", DataType.TEXT, "", "abc"),
        ("12.50", DataType.NUMERIC, "", "12.50"),
    ],
)
def test_data_to_sql_data(data, dtype, semtype, want):
    assert data_to_sql_data(data, dtype, semtype) == want


@pytest.mark.parametrize(
    "data, dtype, semtype",
    [
        ("true", DataType.BOOLEAN, ""),
        ("1", DataType.INTEGER, ""),
        (5.0, DataType.TEXT, ""),
        (5.0, DataType.TIME, "other"),
        (5.0, DataType.UNKNOWN, ""),
    ],
)
def test_data_to_sql_data_errors(data, dtype, semtype):
    with pytest.raises(ConversionError):
        data_to_sql_data(data, dtype, semtype)


def test_decode_numeric_fixed_scale():
    field = {"parameters": {"scale": "2"}}
    assert decode_numeric_bytes(field, "MDk=", DECIMAL) == "123.45"


def test_decode_numeric_zero_scale_and_small_value():
    assert decode_numeric_bytes({"parameters": {"scale": "0"}}, "MDk=", DECIMAL) == "12345"
    assert decode_numeric_bytes({"parameters": {"scale": "2"}}, "AA==", DECIMAL) == "0.00"


def test_decode_numeric_variable_scale():
    assert decode_numeric_bytes({}, {"scale": 1.0, "value": "MDk="}, VARDECIMAL) == "1234.5"


def test_decode_numeric_errors():
    with pytest.raises(ConversionError):
        decode_numeric_bytes({}, None, DECIMAL)
    with pytest.raises(ConversionError):
        decode_numeric_bytes({"parameters": {"scale": "2"}}, "!!!", DECIMAL)
    with pytest.raises(ConversionError):
        decode_numeric_bytes({}, "MDk=", "other")
    with pytest.raises(ConversionError):
        decode_numeric_bytes({}, "MDk=", DECIMAL)


def test_parameter_scale():
    assert parameter_scale({"parameters": {"scale": "3"}}) == 3
    with pytest.raises(ConversionError):
        parameter_scale({"parameters": {"scale": 3}})
    with pytest.raises(ConversionError):
        parameter_scale({"parameters": {"scale": "x"}})
    with pytest.raises(ConversionError):
        parameter_scale({"parameters": "none"})


def test_struct_scale():
    assert struct_scale({"scale": 4.0, "value": "AA=="}) == (4, "AA==")
    with pytest.raises(ConversionError):
        struct_scale({"scale": 1.5, "value": "AA=="})
    with pytest.raises(ConversionError):
        struct_scale({"scale": 1.0})
    with pytest.raises(ConversionError):
        struct_scale("not an object")