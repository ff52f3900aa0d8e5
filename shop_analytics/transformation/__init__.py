"""
Data Transformation Module
"""
from .normalizers import (
    NormalizationStats,
    RecordNormalizer,
    normalize_orders,
    parse_timestamp,
    round_half_up,
    to_naive_utc,
    to_number,
)

__all__ = [
    "NormalizationStats",
    "RecordNormalizer",
    "normalize_orders",
    "parse_timestamp",
    "round_half_up",
    "to_naive_utc",
    "to_number",
]
