import secrets

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from invoice_engine.core.config import get_settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def api_key_auth(api_key: str | None = Security(api_key_header)) -> None:
    expected = get_settings().API_KEY
    if not api_key or not secrets.compare_digest(api_key, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
