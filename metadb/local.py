"""A temporary on-disk store of MARC rows, binned by field tag."""

from __future__ import annotations

import errno
import json
import shutil
import uuid
from collections.abc import Callable, Iterator
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, TextIO

from .marcutil import get_all_field_names
from .uuidutil import encode_nil_uuid, encode_uuid


class StoreError(Exception):
    """The local store could not complete an operation."""


@dataclass
class Record:
    """One MARC row as written to and read from the store."""

    srs_id: str
    line: int
    matched_id: str
    instance_hrid: str
    instance_id: str
    field: str
    ind1: str
    ind2: str
    ord: int
    sf: str
    content: str


class Store:
    """Writes records into one file per field tag, then reads them back per tag."""

    def __init__(self, datadir: str | Path) -> None:
        self._basepath = Path(datadir) / "tmp" / "marct"
        shutil.rmtree(self._basepath, ignore_errors=True)
        try:
            self._basepath.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"unable to make directory: {self._basepath}: {e}") from e
        self._paths: dict[str, Path] = {}
        self._writers: dict[str, TextIO] = {}
        self._done_writing = False
        for name in get_all_field_names():
            path = self._basepath / name
            try:
                path.touch()
            except OSError as e:
                msg = f"unable to create file: {path}: {e}"
                if e.errno == errno.EMFILE:
                    msg += ': setting "ulimit -n 1024" may help'
                raise StoreError(msg) from e
            self._paths[name] = path

    def __enter__(self) -> Store:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def write(self, record: Record) -> str | None:
        """Store a record; return a message instead if its field is unknown."""
        if self._done_writing:
            raise StoreError("store is not in write mode")
        path = self._paths.get(record.field)
        if path is None:
            return f"unknown field: {record.field}"
        writer = self._writers.get(record.field)
        try:
            if writer is None:
                writer = path.open("a", encoding="utf-8")
                self._writers[record.field] = writer
            writer.write(json.dumps(asdict(record)) + "\n")
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"encoding record: {e}: {record}") from e
        return None

    def finish_writing(self) -> None:
        """End write mode, flushing and closing all files."""
        if self._done_writing:
            raise StoreError("write mode already completed")
        self._done_writing = True
        writers, self._writers = self._writers, {}
        for name, writer in writers.items():
            try:
                writer.close()
            except OSError as e:
                raise StoreError(f"closing file: {self._paths[name]}: {e}") from e

    def close(self) -> None:
        """Close any open files and remove the store from disk."""
        for writer in self._writers.values():
            try:
                writer.close()
            except OSError:
                pass
        self._writers = {}
        shutil.rmtree(self._basepath, ignore_errors=True)

    def read_source(self, field: str, printerr: Callable[[str], None]) -> Source:
        """Open the records of one field tag for reading."""
        if not self._done_writing:
            raise StoreError("source cannot be created in write mode")
        path = self._paths.get(field)
        if path is None:
            raise StoreError(f"field not found: {field}")
        return Source(path, printerr)


class Source:
    """Records of one field tag read back from the store."""

    def __init__(self, path: Path, printerr: Callable[[str], None]) -> None:
        self._path = path
        self._printerr = printerr
        try:
            self._file: TextIO | None = path.open("r", encoding="utf-8")
        except OSError as e:
            raise StoreError(f"unable to open file for reading: {path}: {e}") from e

    def __iter__(self) -> Iterator[Record]:
        if self._file is None:
            raise StoreError(f"source is closed: {self._path}")
        for line in self._file:
            try:
                yield Record(**json.loads(line))
            except (json.JSONDecodeError, TypeError) as e:
                raise StoreError(f"decoding record: {self._path}: {e}") from e

    def values(self, record: Record) -> list[Any]:
        """Return the column values for inserting a record, with UUIDs encoded."""
        try:
            srs_id = encode_uuid(record.srs_id)
        except ValueError as e:
            raise StoreError(f"encoding srs_id: {e}") from e
        try:
            matched_id = encode_uuid(record.matched_id)
        except ValueError as e:
            raise StoreError(f"encoding matched_id: {e}") from e
        try:
            instance_id: uuid.UUID = encode_uuid(record.instance_id)
        except ValueError as e:
            self._printerr(
                f'id={record.srs_id}: encoding instance_id "{record.instance_id}": {e}'
            )
            instance_id = encode_nil_uuid()
        return [
            srs_id,
            record.line,
            matched_id,
            record.instance_hrid,
            instance_id,
            record.field,
            record.ind1,
            record.ind2,
            record.ord,
            record.sf,
            record.content,
        ]

    def close(self) -> None:
        """Close the source and remove its file."""
        if self._file is not None:
            self._file.close()
            self._file = None
        self._path.unlink(missing_ok=True)