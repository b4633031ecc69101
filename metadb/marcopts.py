"""Naming options for MARC partition tables."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Options:
    """Schema and table naming used when writing MARC partitions."""

    temp_partition_schema: str = ""
    temp_table_prefix: str = ""
    partition_table_base: str = ""
    final_partition_schema: str = ""

    def sf_partition_table(self, field: str, sf: str) -> str:
        """Return the name of the partition table for a field and subfield."""
        return f"{self.partition_table_base}{field}_{sf_to_identifier_string(sf)}"


def sf_to_identifier_string(sf: str) -> str:
    """Convert a subfield code to text usable inside a database identifier."""
    if not sf:
        return ""
    first = sf.encode("utf-8")[0]
    c = chr(first)
    if "a" <= c <= "z" or "0" <= c <= "9":
        return sf
    if "A" <= c <= "Z":
        return c.lower() * 2
    return f"0x{first:x}"