import hashlib
import secrets
from uuid import uuid4


def new_stream_token() -> str:
    return secrets.token_hex(24)


def new_connection_id() -> str:
    return f"cn_{uuid4().hex}"


def pseudonym_for(conn_id: str) -> str:
    """One-way display name for a viewer connection; stable per connection."""
    digest = hashlib.sha256(conn_id.encode("utf-8")).hexdigest()
    return f"anon_{digest[:8]}"
