"""Table and column identifiers, SQL quoting and database connection settings."""

from __future__ import annotations

from dataclasses import dataclass, field, fields


class DatabaseError(Exception):
    """A database error that may carry a hint for the user."""

    def __init__(self, message: str, hint: str = "") -> None:
        super().__init__(message)
        self.hint = hint


@dataclass(frozen=True, order=True)
class Table:
    """A table identified by schema and table name."""

    schema: str
    table: str

    def __str__(self) -> str:
        return f"{self.schema}.{self.table}"

    def main(self) -> Table:
        """Return the main (history) table that backs this table."""
        return Table(self.schema, self.table + "__")

    def sql(self) -> str:
        return f'"{self.schema}"."{self.table}"'

    def main_sql(self) -> str:
        return f'"{self.schema}"."{self.table}__"'


@dataclass(frozen=True, order=True)
class Column:
    """A column identified by schema, table and column name."""

    schema: str
    table: str
    column: str

    def schema_table_sql(self) -> str:
        return f'"{self.schema}"."{self.table}"'

    def column_sql(self) -> str:
        return f'"{self.column}"'


@dataclass
class DB:
    """Connection settings for the database."""

    host: str = ""
    port: str = ""
    user: str = ""
    password: str = field(default="", repr=False)
    super_user: str = ""
    super_password: str = field(default="", repr=False)
    dbname: str = ""
    sslmode: str = ""
    checkpoint_segment_size: int = 0
    max_poll_interval: int = 0

    def __str__(self) -> str:
        hidden = {"password", "super_password"}
        values = ("" if f.name in hidden else str(getattr(self, f.name)) for f in fields(self))
        return "{" + " ".join(values) + "}"

    def conn_string(self, user: str, password: str) -> str:
        """Return a libpq-style connection string for the given credentials."""
        return (
            f"connect_timeout=30 host={self.host} port={self.port} user={user} "
            f"password={password} dbname={self.dbname} sslmode={self.sslmode}"
        )


def parse_table(table: str) -> Table:
    """Parse a name of the form ``schema.table`` (or ``table``) into a Table."""
    parts = table.split(".")
    if len(parts) == 2:
        return Table(parts[0], parts[1])
    if len(parts) == 1:
        return Table("", parts[0])
    raise ValueError(f'"{table}" is not a valid table name')


_ESCAPES = {
    "\\": "\\\\",
    "'": "''",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def encode_string(s: str) -> str:
    """Encode a string as a PostgreSQL escape string literal (E'...')."""
    return "E'" + "".join(_ESCAPES.get(c, c) for c in s) + "'"