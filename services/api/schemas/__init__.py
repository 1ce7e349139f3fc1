"""
Pydantic schemas for API request validation.
"""
from .record import (
    InspectionRecordA,
    InspectionRecordB,
    InspectionRecordBase,
    RECORD_MODELS,
    parse_record,
)

__all__ = [
    "InspectionRecordA",
    "InspectionRecordB",
    "InspectionRecordBase",
    "RECORD_MODELS",
    "parse_record",
]
