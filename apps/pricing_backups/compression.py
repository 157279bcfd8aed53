"""
Snapshot serialization and compression.

Snapshots are serialized to canonical JSON (sorted keys, compact separators)
and compressed with gzip, following the pattern:
Payload -> JSON -> Gzip Compression -> Database
"""

import gzip
import json
import logging
import zlib

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

from .exceptions import CompressionError, DecompressionError

logger = logging.getLogger(__name__)


def serialize_snapshot(payload) -> bytes:
    """
    Serialize a snapshot payload to canonical UTF-8 JSON bytes.

    Raises:
        CompressionError: If the payload contains values that cannot be serialized
    """
    try:
        return json.dumps(
            payload,
            cls=DjangoJSONEncoder,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise CompressionError(f"Snapshot serialization failed: {e}") from e


def compress_snapshot(payload, compression_level=None) -> dict:
    """
    Serialize and gzip a snapshot payload.

    Args:
        payload: JSON-compatible snapshot payload
        compression_level: Gzip level (defaults to PRICING_BACKUP_COMPRESSION_LEVEL)

    Returns:
        Dictionary with compressed_data, original_size, compressed_size and
        compression_ratio (compressed / original)

    Raises:
        CompressionError: If serialization or compression fails
    """
    if compression_level is None:
        compression_level = getattr(settings, "PRICING_BACKUP_COMPRESSION_LEVEL", 9)

    raw = serialize_snapshot(payload)

    try:
        compressed = gzip.compress(raw, compresslevel=compression_level)
    except (ValueError, zlib.error) as e:
        raise CompressionError(f"Compression failed: {e}") from e

    original_size = len(raw)
    compressed_size = len(compressed)
    compression_ratio = round(compressed_size / original_size, 4) if original_size else 0.0

    logger.debug(
        f"Compressed snapshot: {original_size} -> {compressed_size} bytes "
        f"(ratio {compression_ratio})"
    )

    return {
        "compressed_data": compressed,
        "original_size": original_size,
        "compressed_size": compressed_size,
        "compression_ratio": compression_ratio,
    }


def decompress_snapshot(data):
    """
    Inflate and parse stored snapshot bytes.

    Args:
        data: Gzip bytes (bytes, bytearray or memoryview as returned by the database)

    Returns:
        The snapshot payload

    Raises:
        DecompressionError: If the bytes are not a valid gzip JSON snapshot
    """
    if isinstance(data, memoryview):
        data = data.tobytes()

    if not isinstance(data, (bytes, bytearray)):
        raise DecompressionError(
            f"Decompression failed: expected bytes, got {type(data).__name__}"
        )

    try:
        raw = gzip.decompress(bytes(data))
    except (OSError, EOFError, zlib.error) as e:
        raise DecompressionError(f"Decompression failed: {e}") from e

    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecompressionError(f"Snapshot payload is not valid JSON: {e}") from e
