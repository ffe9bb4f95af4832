"""Record id generation."""

import uuid


def new_record_id(prefix: str) -> str:
    """Generate a collection-scoped id such as ``pay-3f9c2a1b7d4e``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"
