"""Public Supabase Storage URLs for supplier images."""

from __future__ import annotations

from urllib.parse import quote


def public_image_url(supabase_url: str, bucket: str, path_or_url: str | None) -> str | None:
    """
    Resolve a stored image path into a public object URL.

    Absolute http(s) URLs are returned unchanged. Returns None when the path,
    bucket or Supabase URL is empty.

    Examples:
        public_image_url("https://x.supabase.co", "supplier-gallery", "a b/hero.jpg")
        -> "https://x.supabase.co/storage/v1/object/public/supplier-gallery/a%20b/hero.jpg"
    """
    value = (path_or_url or "").strip()
    if not value:
        return None
    if value.startswith(("http://", "https://")):
        return value

    base = (supabase_url or "").strip().rstrip("/")
    bucket = (bucket or "").strip()
    if not base or not bucket:
        return None

    clean_path = "/".join(quote(seg, safe="") for seg in value.lstrip("/").split("/"))
    return f"{base}/storage/v1/object/public/{quote(bucket, safe='')}/{clean_path}"
