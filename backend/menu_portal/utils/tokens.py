# menu_portal/utils/tokens.py
import secrets
import uuid

def new_submission_id() -> str:
    return str(uuid.uuid4())

def new_access_token() -> str:
    # Drawn independently of the id, so neither can be derived from the other
    return secrets.token_urlsafe(32)

def new_docs_token() -> str:
    return secrets.token_hex(32)

def tokens_match(expected: str | None, supplied: str | None) -> bool:
    """Constant-time comparison that treats missing values as a mismatch."""
    if not expected or not supplied:
        return False
    return secrets.compare_digest(expected.encode(), supplied.encode())
