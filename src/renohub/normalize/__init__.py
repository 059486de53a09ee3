"""Normalization — field extraction and entity mapping."""
from renohub.normalize.extractor import decode, extract, first_value
from renohub.normalize.normalizer import SOURCE_KINDS, config_map, normalize

__all__ = [
    "SOURCE_KINDS",
    "config_map",
    "decode",
    "extract",
    "first_value",
    "normalize",
]
