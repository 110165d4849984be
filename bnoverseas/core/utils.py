import uuid
from datetime import datetime, timezone


def generate_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current UTC time without tzinfo, matching what the database hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
