"""ID generation utilities."""

import uuid


def generate_id(prefix: str) -> str:
    """Generate a prefixed unique ID.

    Args:
        prefix: The prefix (e.g., "org_", "ws_", "usr_").

    Returns:
        A string like "ws_a1b2c3d4e5f6a7b8".
    """
    short_uuid = uuid.uuid4().hex[:16]
    return f"{prefix}{short_uuid}"


def generate_file_id() -> str:
    """Document ids are plain UUIDs; the indexing service keys chunks by them."""
    return str(uuid.uuid4())
