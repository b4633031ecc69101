import json

import pytest

from metadb.marc import Marc, MarcError, get_instance_id, transform
from metadb.uuidutil import NIL_UUID

INSTANCE = "6a1e0b2c-3d4e-4f50-8a6b-7c8d9e0f1a2b"
LEADER = "00000nam a2200000 a 4500"


def _record(instance=INSTANCE, extra=None):
    fields = [
        {"001": "in001"},
        {"245": {"ind1": "1", "ind2": "0", "subfields": [{"a": "Title"}, {"b": "Sub"}]}},
        {"650": {"ind1": " ", "ind2": "0", "subfields": [{"a": "One"}]}},
        {"650": {"ind1": " ", "ind2": "0", "subfields": [{"a": "Two"}]}},
        {"999": {"ind1": "f", "ind2": "f", "subfields": [{"i": instance}]}},
    ]
    if extra:
        fields.extend(extra)
    return json.dumps({"leader": LEADER, "fields": fields})


def test_transform_rows():
    rows, instance_id = transform(_record(), "ACTUAL")
    assert instance_id == INSTANCE
    assert rows[0] == Marc(1, "000", "", "", 1, "", LEADER)
    assert rows[1] == Marc(2, "001", "", "", 1, "", "in001")
    assert rows[2] == Marc(3, "245", "1", "0", 1, "a", "Title")
    assert rows[3] == Marc(4, "245", "1", "0", 1, "b", "Sub")
    assert [r.line for r in rows] == list(range(1, len(rows) + 1))


def test_repeated_tags_count_ord():
    rows, _ = transform(_record(), "ACTUAL")
    ords = [(r.content, r.ord) for r in rows if r.field == "650"]
    assert ords == [("One", 1), ("Two", 2)]


def test_not_actual():
    assert transform(_record(), "OLD") == ([], NIL_UUID)


def test_no_instance_id_means_not_current():
    doc = json.dumps({"leader": LEADER, "fields": [{"001": "x"}]})
    assert transform(doc, "ACTUAL") == ([], NIL_UUID)


def test_invalid_json():
    with pytest.raises(MarcError):
        transform("{not json", "ACTUAL")


def test_not_an_object():
    with pytest.raises(MarcError, match="parsing error"):
        transform("[1, 2]", "ACTUAL")


def test_missing_leader():
    with pytest.raises(MarcError, match='"leader" not found'):
        transform(json.dumps({"fields": []}), "ACTUAL")


def test_fields_not_array():
    with pytest.raises(MarcError, match='"fields" is not an array'):
        transform(json.dumps({"leader": LEADER, "fields": {}}), "ACTUAL")


def test_unknown_field_type():
    doc = json.dumps({"leader": LEADER, "fields": [{"100": 5}]})
    with pytest.raises(MarcError, match='unknown data type in field "100"'):
        transform(doc, "ACTUAL")


def test_missing_ind1():
    doc = json.dumps({"leader": LEADER, "fields": [{"245": {"ind2": "0", "subfields": []}}]})
    with pytest.raises(MarcError, match='"ind1" not found'):
        transform(doc, "ACTUAL")


def test_subfield_not_string():
    doc = json.dumps(
        {"leader": LEADER, "fields": [{"245": {"ind1": "", "ind2": "", "subfields": [{"a": 1}]}}]}
    )
    with pytest.raises(MarcError, match="subfield value is not a string"):
        transform(doc, "ACTUAL")


def test_multiple_instance_ids():
    extra = [{"999": {"ind1": "f", "ind2": "f", "subfields": [{"i": INSTANCE}]}}]
    with pytest.raises(MarcError, match="multiple values"):
        transform(_record(extra=extra), "ACTUAL")


def test_non_uuid_instance_id():
    with pytest.raises(MarcError, match="non-UUID"):
        transform(_record(instance="not-a-uuid"), "ACTUAL")


def test_get_instance_id_trims_space():
    rows = [Marc(1, "999", "f", "f", 1, "i", f"  {INSTANCE} ")]
    assert get_instance_id(rows) == INSTANCE


def test_get_instance_id_ignores_other_indicators():
    rows = [Marc(1, "999", " ", " ", 1, "i", INSTANCE)]
    assert get_instance_id(rows) == ""