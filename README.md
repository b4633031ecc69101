# metadb

Building blocks for streaming change data into a PostgreSQL analytics
database and for turning MARC records into rows. The package has no
dependencies outside the standard library.

## Modules

- `metadb.change`: decode change-event messages in Debezium's JSON
  format. `new_event` takes a `Message` (raw key bytes, value bytes and
  topic) and returns an `Event`. `parse_event_key` and `parse_event_value`
  decode the parts on their own. Input that cannot be decoded raises
  `ChangeEventError`.
- `metadb.datatypes`: the `DataType` and `Operation` enums. Also:
  - `convert_data_type` and `convert_type_size` map event field types.
  - `make_data_type` and `data_to_sql_data` handle database type names.
  - `data_to_sql_data` turns event values into SQL-ready strings.
  - `decode_numeric_bytes`, `parameter_scale` and `struct_scale` decode
    Kafka Connect decimals.
  - `trim_fractional_zeros` and `fixup_sql_time` tidy times.
  - `infer_type_from_string` recognises timestamp strings.

  Conversion failures raise `ConversionError`.
- `metadb.command`: `new_command` builds a `Command` (merge, delete or
  truncate) from an `Event`. It applies schema pass/stop filters and a
  table stop filter, given as compiled regular expressions. It rewrites
  schema prefixes and splits off an origin prefix with `extract_origin`.
  It returns `(command, is_snapshot)`; the command is `None` when the
  event is filtered out or carries nothing to apply.
  - `MessageSet` reports each missing-primary-key warning only once.
  - `primary_key_columns` returns the key columns in key order.
  - `CommandGraph` holds root commands with their sub-commands.
- `metadb.dbx`: table and column names (`Table`, `Column`, `parse_table`)
  with SQL quoting. `DB` holds connection settings: `DB.conn_string`
  builds a libpq-style connection string and `str(DB)` hides passwords.
  `encode_string` writes PostgreSQL `E'...'` literals. `DatabaseError`
  carries an optional hint.
- `metadb.config`: `JSONPath` and `new_json_path`, fixed-size paths into
  JSON columns (up to 16 nodes), and the `EXPERIMENTAL` flag.
- `metadb.statements`: dataclasses for parsed statements, such as
  `CreateDataSourceStmt`, `AlterTableStmt` and `ListStmt`.
- `metadb.uuidutil`: `is_uuid`, `encode_uuid`, `encode_nil_uuid` and
  `NIL_UUID`.
- `metadb.marc`: `transform` turns a MARC record in JSON form into `Marc`
  rows and returns its instance identifier from 999 ff $i. Records that
  are not `"ACTUAL"`, or that lack that identifier, yield no rows and
  the nil UUID. Malformed records raise `MarcError`.
- `metadb.marcutil`: `transform_record` validates and transforms one
  source record, reporting skips through a `printerr` callback. It also
  provides `md5_expression`, `get_all_field_names`, `escape_sf_string`,
  `elapsed_time` and `FieldSF`.
- `metadb.marcopts`: `Options.sf_partition_table` and
  `sf_to_identifier_string` name partition tables per field and subfield.
- `metadb.local`: `Store` stages `Record` rows on disk, one JSON-lines
  file per field tag under `<datadir>/tmp/marct`.
  - Call `finish_writing` once writing is done.
  - `read_source` then opens a `Source`, which iterates the records of
    one field.
  - `Source.values` returns a record's insert values, with UUIDs encoded.
  - Use `Store` as a context manager to remove the files afterwards.
- `metadb.eout`: messages on standard error prefixed with the program name
  set by `init`: `error`, `warning`, `info`, `verbose`, `trace`.
  - `verbose` and `trace` are gated by the module flags `enable_verbose`
    and `enable_trace`.
  - Colour is controlled with `always_color`, `auto_color` and
    `never_color`.

## Example

```python
import json

from metadb.command import extract_origin
from metadb.dbx import parse_table
from metadb.marc import transform

table = parse_table("library.loans")
print(table.main_sql())        # "library"."loans__"

print(extract_origin(["reshare_west"], "reshare_west_inventory"))
# ('reshare_west', 'inventory')

record = json.dumps({
    "leader": "00000nam a2200000 a 4500",
    "fields": [
        {"001": "in0001"},
        {"999": {"ind1": "f", "ind2": "f",
                 "subfields": [{"i": "11111111-1111-1111-1111-111111111111"}]}},
    ],
})
rows, instance_id = transform(record, "ACTUAL")
for row in rows:
    print(row.line, row.field, row.sf, row.content)
# 1 000  00000nam a2200000 a 4500
# 2 001  in0001
# 3 999 i 11111111-1111-1111-1111-111111111111
```

## What it does not do

The package does not connect to a database or to a message stream. It
builds SQL strings and connection strings, but does not execute them.
There is no server, no catalog kept in a database, and no command-line
program. Running the change-data pipeline or loading MARC tables needs
code of your own around these pieces.

## Running the tests

```
pip install -e .[test]
pytest
```