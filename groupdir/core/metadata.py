"""
Encoding and decoding of group metadata.

Metadata is a flat mapping of string keys to string values, stored as a JSON
text blob. Encoding such a mapping always succeeds; anything else that is
handed to the codec is a programming error and surfaces as a
`SerializationError`.
"""

from collections.abc import Mapping

from pydantic import TypeAdapter, ValidationError

METADATA_ADAPTER = TypeAdapter(dict[str, str])


class SerializationError(Exception):
    pass


def encode_metadata(metadata: Mapping[str, str] | None) -> str:
    """
    Encode a metadata mapping to its stored text representation.

    Raises
    ------
    SerializationError
        If `metadata` is not a flat string to string mapping.
    """
    if metadata is None:
        metadata = {}
    elif isinstance(metadata, Mapping):
        # Read-only and ordered mappings are stored like plain dicts.
        metadata = dict(metadata)

    try:
        # Strict so that non-string values are rejected rather than coerced.
        checked = METADATA_ADAPTER.validate_python(metadata, strict=True)
    except ValidationError as e:
        raise SerializationError(f"Could not encode group metadata: {e}") from e

    return METADATA_ADAPTER.dump_json(checked).decode("utf-8")


def decode_metadata(blob: str | None) -> dict[str, str]:
    """
    Decode a stored metadata blob. Empty or missing blobs decode to an
    empty mapping.

    Raises
    ------
    SerializationError
        If the blob is not a JSON object of strings.
    """
    if not blob:
        return {}

    try:
        return METADATA_ADAPTER.validate_json(blob, strict=True)
    except ValidationError as e:
        raise SerializationError(f"Could not decode group metadata: {e}") from e
