"""Change-event decoding, SQL type mapping, table naming and MARC record tabulation."""

__version__ = "0.1.0"