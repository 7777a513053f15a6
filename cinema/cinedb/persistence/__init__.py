"""
Persistence module for CineDB - whole-model save and load.

This module provides:
- ExtentDocument: pydantic envelope of a saved model
- encode_value/decode_value: tagged JSON codec for field values
- PersistenceGateway: atomic save, validate-first load
- save_to_file/load_from_file: helpers for the active context
"""

from .codec import decode_value, encode_value
from .document import DOCUMENT_FORMAT, DOCUMENT_VERSION, ExtentDocument
from .gateway import PersistenceGateway, load_from_file, rebuild, save_to_file

__all__ = [
    "DOCUMENT_FORMAT",
    "DOCUMENT_VERSION",
    "ExtentDocument",
    "PersistenceGateway",
    "decode_value",
    "encode_value",
    "load_from_file",
    "rebuild",
    "save_to_file",
]
