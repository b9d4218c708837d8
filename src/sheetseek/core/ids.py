from __future__ import annotations

import uuid


def new_stored_name(suffix: str = "") -> str:
    """Random name for an uploaded binary, keeping the original suffix."""
    return f"{uuid.uuid4().hex}{suffix}"
