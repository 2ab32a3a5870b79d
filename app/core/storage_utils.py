# app/core/storage_utils.py
import logging
import uuid

from app.core.config import get_settings
from app.core.supabase_client import supabase_admin

logger = logging.getLogger(__name__)


def _bucket():
    return supabase_admin().storage.from_(get_settings().STORAGE_BUCKET)


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    If a file already exists at this path, it will be overwritten
    thanks to the 'upsert' option.

    Args:
        path: Full object path inside the bucket.
              Example: "products/<uuid>/<uuid>.png"
        file_bytes: File content in bytes.
        content_type: MIME type stored with the object.

    Returns:
        Public URL to the uploaded file.

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    bucket = _bucket()
    bucket.upload(path, file_bytes, {"upsert": "true", "content-type": content_type})
    return bucket.get_public_url(path)


def extract_path_from_public_url(url: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/assets/products/p/a.png
        -> 'products/p/a.png'
    """
    marker = f"/storage/v1/object/public/{get_settings().STORAGE_BUCKET}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :].split("?", 1)[0]


def delete_public_urls(urls: list[str]) -> None:
    """
    Best-effort delete of stored files by their public URLs.

    URLs outside this bucket are skipped. Storage failures are logged and
    do not propagate: a stale file must not block catalog changes.
    """
    paths = [p for p in (extract_path_from_public_url(u) for u in urls) if p]
    if not paths:
        return
    try:
        _bucket().remove(paths)
    except Exception:
        logger.warning("Failed to delete %d stored file(s)", len(paths), exc_info=True)


def generate_filename(ext: str) -> str:
    """
    Generate a random filename using UUID4.

    Args:
        ext: File extension without dot (e.g. "png", "jpg")

    Returns:
        A filename like "<uuid4>.png"
    """
    return f"{uuid.uuid4()}.{ext}"
