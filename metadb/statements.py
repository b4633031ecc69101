"""Statement types produced by the command parser."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Option:
    """An option in a statement, e.g. ``ADD brokers 'host'``."""

    action: str = ""
    name: str = ""
    val: str = ""


class Stmt:
    """Base class of all statements."""


@dataclass
class SelectStmt(Stmt):
    pass


@dataclass
class CreateDataSourceStmt(Stmt):
    data_source_name: str = ""
    type_name: str = ""
    options: list[Option] = field(default_factory=list)


@dataclass
class CreateDataMappingStmt(Stmt):
    type_name: str = ""
    table_name: str = ""
    column_name: str = ""
    path: str = ""
    target_identifier: str = ""


@dataclass
class CreateDataOriginStmt(Stmt):
    origin_name: str = ""


@dataclass
class AlterDataSourceStmt(Stmt):
    data_source_name: str = ""
    options: list[Option] = field(default_factory=list)


@dataclass
class DropDataSourceStmt(Stmt):
    data_source_name: str = ""


@dataclass
class AuthorizeStmt(Stmt):
    data_source_name: str = ""
    role_name: str = ""


@dataclass
class CreateUserStmt(Stmt):
    user_name: str = ""
    options: list[Option] = field(default_factory=list)


@dataclass
class ListStmt(Stmt):
    name: str = ""


@dataclass
class RefreshInferredColumnTypesStmt(Stmt):
    pass


@dataclass
class AlterTableCmd:
    """A column change within an ALTER TABLE statement."""

    column_name: str = ""
    column_type: str = ""


@dataclass
class AlterTableStmt(Stmt):
    table_name: str = ""
    cmd: AlterTableCmd | None = None


@dataclass
class VerifyConsistencyStmt(Stmt):
    pass