import pytest

from metadb.dbx import DB, Column, DatabaseError, Table, encode_string, parse_table


def test_parse_table_with_schema():
    assert parse_table("folio.users") == Table("folio", "users")


def test_parse_table_without_schema():
    assert parse_table("users") == Table("", "users")


def test_parse_table_invalid():
    with pytest.raises(ValueError, match="is not a valid table name"):
        parse_table("a.b.c")


def test_table_str_round_trip():
    t = Table("folio", "users")
    assert parse_table(str(t)) == t


def test_table_main():
    assert Table("s", "t").main() == Table("s", "t__")


def test_table_sql_forms():
    t = Table("s", "t")
    assert t.sql() == '"s"."t"'
    assert t.main_sql() == t.main().sql()


def test_column_sql():
    c = Column("s", "t", "c")
    assert c.schema_table_sql() == Table("s", "t").sql()
    assert c.column_sql() == '"c"'


def test_tables_hashable_and_ordered():
    tables = sorted({Table("b", "x"), Table("a", "y"), Table("a", "y")})
    assert tables == [Table("a", "y"), Table("b", "x")]


def test_db_str_hides_passwords():
    password = "password"
    db = DB(host="localhost", port="5432", user="u", password=password,
            super_user="su", super_password=password, dbname="d", sslmode="disable")
    text = str(db)
    assert "password" not in text
    assert text == "{localhost 5432 u  su  d disable 0 0}"


def test_db_conn_string():
    db = DB(host="localhost", port="5432", dbname="d", sslmode="require")
    password = "secret"
    s = db.conn_string("u", password)
    assert s.startswith("connect_timeout=30 host=localhost port=5432 user=u ")
    assert "password=secret" in s
    assert s.endswith("dbname=d sslmode=require")


def test_encode_string_plain():
    assert encode_string("abc") == "E'abc'"


def test_encode_string_escapes():
    assert encode_string("a'b\\c") == "E'a''b\\\\c'"
    assert encode_string("\n\t\r\b\f") == "E'\\n\\t\\r\\b\\f'"


def test_encode_string_empty():
    assert encode_string("") == "E''"


def test_database_error_hint():
    err = DatabaseError("failed", hint="try again")
    assert str(err) == "failed"
    assert err.hint == "try again"