# menu_portal/utils/filenames.py
import os
import re
import secrets

# Characters that are unsafe in file names on common filesystems, plus control chars
_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')
# Stored upload names keep latin letters, digits, '_' / '-' and Arabic letters only
_UPLOAD_STEM_CHARS = re.compile(r"[^a-zA-Z0-9_\-\u0600-\u06FF]")

def sanitize_filename(name: str) -> str:
    """Replaces unsafe characters with '_' and collapses whitespace."""
    cleaned = _UNSAFE_CHARS.sub("_", name or "")
    return re.sub(r"\s+", " ", cleaned).strip()

def safe_brand_name(brand_name: str) -> str:
    """Brand name as used in folder / file names: sanitized, spaces become underscores."""
    cleaned = sanitize_filename(brand_name or "")
    return re.sub(r"\s+", "_", cleaned) or "brand"

def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()

def unique_upload_name(original_name: str) -> str:
    """Collision-safe stored name: sanitized stem + random suffix + original extension."""
    base = os.path.basename(original_name or "")
    stem, ext = os.path.splitext(base)
    safe_stem = _UPLOAD_STEM_CHARS.sub("_", stem)[:80] or "image"
    return f"{safe_stem}_{secrets.token_hex(4)}{ext.lower()}"

def dedupe_name(stem: str, ext: str, used: set) -> str:
    """
    Returns `stem + ext`, or `stem (2) + ext`, `stem (3) + ext`, ... for the first
    variant not already in `used` (compared case-insensitively). Records the result.
    """
    candidate = f"{stem}{ext}"
    counter = 2
    while candidate.lower() in used:
        candidate = f"{stem} ({counter}){ext}"
        counter += 1
    used.add(candidate.lower())
    return candidate
