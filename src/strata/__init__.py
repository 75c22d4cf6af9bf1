"""
Strata: schema-driven record transform plugins.

Per-record transforms that reshape structured records flowing through an
ETL pipeline: delimited-text parsing, field encoding, row cloning and
header/body enveloping.
"""

__version__ = "0.1.0"
