import logging
from urllib.parse import quote

import httpx

from auction_admin.config import settings

logger = logging.getLogger(__name__)


class SupabaseError(Exception):
    """A Supabase Storage or Auth admin call failed."""


def is_configured() -> bool:
    return bool(settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY)


def _base_url() -> str:
    return settings.SUPABASE_URL.rstrip("/")


def _headers() -> dict:
    key = settings.SUPABASE_SERVICE_ROLE_KEY
    return {"apikey": key, "Authorization": f"Bearer {key}"}


def public_url(file_name: str) -> str:
    bucket = settings.SUPABASE_STORAGE_BUCKET
    return f"{_base_url()}/storage/v1/object/public/{bucket}/{quote(file_name)}"


async def upload_document(file_name: str, content: bytes, content_type: str | None = None) -> str:
    """Upload a file to the auction documents bucket and return its public URL."""
    if not is_configured():
        raise SupabaseError("Supabase storage is not configured")

    url = f"{_base_url()}/storage/v1/object/{settings.SUPABASE_STORAGE_BUCKET}/{quote(file_name)}"
    headers = {**_headers(), "Content-Type": content_type or "application/octet-stream"}
    try:
        async with httpx.AsyncClient(timeout=settings.SUPABASE_TIMEOUT) as client:
            resp = await client.post(url, content=content, headers=headers)
            resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error(f"Storage upload of {file_name} rejected: {e.response.status_code} {e.response.text}")
        raise SupabaseError(f"Upload failed: {e.response.text or e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error(f"Storage upload of {file_name} failed: {e}")
        raise SupabaseError(f"Upload failed: {e}") from e

    logger.info(f"Uploaded {file_name} to bucket {settings.SUPABASE_STORAGE_BUCKET}")
    return public_url(file_name)


async def delete_auth_user(user_id: str) -> bool:
    """Remove a user from Supabase Auth. Returns False when Supabase is not configured."""
    if not is_configured():
        logger.warning(f"Supabase not configured, auth user {user_id} left in place")
        return False

    url = f"{_base_url()}/auth/v1/admin/users/{quote(user_id)}"
    try:
        async with httpx.AsyncClient(timeout=settings.SUPABASE_TIMEOUT) as client:
            resp = await client.delete(url, headers=_headers())
            resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Auth user deletion for {user_id} failed: {e}")
        raise SupabaseError(f"Failed to delete auth user: {e}") from e
    return True
