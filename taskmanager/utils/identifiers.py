"""Utilities for generating opaque primary keys."""
import uuid


def new_id() -> str:
    """Return a new random identifier suitable for a ``String(36)`` primary key."""
    return str(uuid.uuid4())
