"""
Core utility functions.
"""

from .crypto import (
    encrypt,
    decrypt,
    hash_text,
    EncryptionError,
)
from .text import (
    generate_short_id,
    slugify_title,
    normalize_url,
    extract_domain,
    is_safe_link,
    is_valid_http_url,
    render_markdown,
    extract_mentions,
    time_ago,
    truncate,
)

__all__ = [
    'encrypt',
    'decrypt',
    'hash_text',
    'EncryptionError',
    'generate_short_id',
    'slugify_title',
    'normalize_url',
    'extract_domain',
    'is_safe_link',
    'is_valid_http_url',
    'render_markdown',
    'extract_mentions',
    'time_ago',
    'truncate',
]
