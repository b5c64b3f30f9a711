"""
Text helpers shared by stories, comments and messages.
"""

import re
import secrets
import string
from html import unescape
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

import markdown
from django.utils import timezone
from django.utils.timesince import timesince
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

SHORT_ID_ALPHABET = string.ascii_lowercase + string.digits

# Query parameters that only track where a link was shared
TRACKING_PARAMS = {'fbclid', 'gclid'}
TRACKING_PREFIXES = ('utm_',)

MENTION_PATTERN = re.compile(r'(?<![\w@])@([a-zA-Z0-9_-]{3,50})')


def generate_short_id(length: int = 6) -> str:
    """Random lowercase alphanumeric identifier used in public URLs."""
    return ''.join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(length))


def slugify_title(title: str, max_length: int = 50) -> str:
    """
    Build the URL slug for a story title.

    'Hello, World!' -> 'hello_world'
    """
    slug = re.sub(r'[^a-z0-9-]+', '_', (title or '').lower())
    slug = re.sub(r'_+', '_', slug).strip('_')
    return slug[:max_length]


def _is_tracking_param(name: str) -> bool:
    name = name.lower()
    return name in TRACKING_PARAMS or name.startswith(TRACKING_PREFIXES)


def normalize_url(url: str) -> str:
    """
    Canonical form of a story URL used for duplicate checks.

    http becomes https, a leading www. and trailing slash are removed and
    tracking parameters are dropped. Remaining query parameters keep their order.
    """
    url = (url or '').strip()
    if not url:
        return ''

    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme == 'http':
        scheme = 'https'

    netloc = parts.netloc.lower()
    if netloc.startswith('www.'):
        netloc = netloc[4:]

    path = parts.path.rstrip('/')
    query = urlencode([
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not _is_tracking_param(key)
    ])

    return urlunsplit((scheme, netloc, path, query, ''))


def extract_domain(url: str) -> str:
    """Host part of a URL without the www. prefix."""
    if not url:
        return ''
    host = (urlsplit(url.strip()).hostname or '').lower()
    if host.startswith('www.'):
        host = host[4:]
    return host


def is_valid_http_url(url: str) -> bool:
    parts = urlsplit((url or '').strip())
    return parts.scheme in ('http', 'https') and bool(parts.hostname)


# Link targets allowed to survive rendering; relative links have no scheme
SAFE_URL_SCHEMES = ('http', 'https', 'mailto', '')

# Characters browsers ignore inside a URL scheme
_IGNORED_IN_SCHEME = re.compile(r'[\x00-\x20]+')


def is_safe_link(url: str) -> bool:
    url = _IGNORED_IN_SCHEME.sub('', unescape(url or ''))
    try:
        scheme = urlsplit(url).scheme.lower()
    except ValueError:
        return False
    return scheme in SAFE_URL_SCHEMES


class _SafeLinkTreeprocessor(Treeprocessor):
    """Drop href/src attributes that point at javascript:, data: and the like"""

    def run(self, root):
        for element in root.iter():
            for attribute in ('href', 'src'):
                value = element.get(attribute)
                if value is not None and not is_safe_link(value):
                    del element.attrib[attribute]


class SafeMarkdownExtension(Extension):
    """Raw HTML is shown as text and only http(s)/mailto links are kept."""

    def extendMarkdown(self, md):
        md.preprocessors.deregister('html_block')
        md.inlinePatterns.deregister('html')
        # after the unescape treeprocessor so backslash escapes are resolved
        md.treeprocessors.register(_SafeLinkTreeprocessor(md), 'safe_links', -10)


def render_markdown(text: str) -> str:
    """
    Render user-supplied markdown to HTML.

    Raw HTML is never interpreted: it renders as escaped text.
    """
    if not text:
        return ''
    md = markdown.Markdown(
        extensions=['fenced_code', 'nl2br', 'sane_lists', SafeMarkdownExtension()],
        output_format='html',
    )
    return md.convert(text)


def extract_mentions(text: str) -> list:
    """Unique @usernames in order of first appearance."""
    seen = []
    for name in MENTION_PATTERN.findall(text or ''):
        if name.lower() not in [s.lower() for s in seen]:
            seen.append(name)
    return seen


def time_ago(value) -> str:
    if value is None:
        return ''
    if (timezone.now() - value).total_seconds() < 60:
        return 'just now'
    return f'{timesince(value).split(",")[0]} ago'


def truncate(text: str, length: int) -> str:
    text = text or ''
    if len(text) <= length:
        return text
    return text[:length - 3].rstrip() + '...'
