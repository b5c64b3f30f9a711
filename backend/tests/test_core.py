"""
Tests for the shared helpers in apps.core: text utilities, message
encryption, the action rate limiter and the namespaced cache.
"""

import base64
import os
import subprocess
import sys
from pathlib import Path

import pytest
from hypothesis import given, strategies as st, settings

from apps.core.exceptions import AppError, NotFound, RateLimited
from apps.core.services import CacheService, RateLimitConfig, RateLimitService
from apps.core.utils import (
    EncryptionError,
    decrypt,
    encrypt,
    extract_domain,
    extract_mentions,
    generate_short_id,
    is_safe_link,
    is_valid_http_url,
    normalize_url,
    render_markdown,
    slugify_title,
    truncate,
)

BACKEND_DIR = Path(__file__).resolve().parent.parent


class TestTextUtils:

    def test_normalize_url_drops_tracking_and_www(self):
        url = 'http://www.Example.com/path/?utm_source=x&a=1&fbclid=2'
        assert normalize_url(url) == 'https://example.com/path?a=1'

    def test_normalize_url_trailing_slash(self):
        assert normalize_url('https://example.com/') == 'https://example.com'
        assert normalize_url('https://example.com/a/') == normalize_url('http://www.example.com/a')

    def test_normalize_url_keeps_query_order(self):
        assert normalize_url('https://example.com/?b=2&a=1') == 'https://example.com?b=2&a=1'

    def test_normalize_url_empty(self):
        assert normalize_url('') == ''
        assert normalize_url(None) == ''

    def test_slugify_title(self):
        assert slugify_title('Hello, World!') == 'hello_world'
        assert slugify_title('  --Already-dashed--  ') == '--already-dashed--'
        assert len(slugify_title('word ' * 40)) <= 50

    def test_extract_domain(self):
        assert extract_domain('https://WWW.Example.com:8080/x') == 'example.com'
        assert extract_domain('https://blog.example.org/post') == 'blog.example.org'
        assert extract_domain('') == ''

    def test_is_valid_http_url(self):
        assert is_valid_http_url('https://example.com')
        assert not is_valid_http_url('ftp://example.com')
        assert not is_valid_http_url('javascript:alert(1)')
        assert not is_valid_http_url('https://')

    def test_extract_mentions(self):
        text = 'hi @alice and @Alice, @bob! mail me at email@foo.com, @ab is too short'
        assert extract_mentions(text) == ['alice', 'bob']

    def test_render_markdown_escapes_html(self):
        html = render_markdown('<script>x</script> **bold**')
        assert '<script>' not in html
        assert '&lt;script&gt;' in html
        assert '<strong>bold</strong>' in html

    def test_render_markdown_block_html_is_text(self):
        html = render_markdown('<div onclick="steal()">hi</div>')
        assert '<div' not in html
        assert '&lt;div' in html

    @pytest.mark.parametrize('source', [
        '[click](javascript:alert(1))',
        '[click](JavaScript:alert(1))',
        '[click](vbscript:msgbox(1))',
        '![pic](data:text/html;base64,PHNjcmlwdD4=)',
    ])
    def test_render_markdown_drops_unsafe_links(self, source):
        html = render_markdown(source)
        assert 'script:' not in html.lower()
        assert 'data:' not in html

    def test_render_markdown_keeps_safe_links(self):
        html = render_markdown('[a](https://example.com/x) [b](/s/abc123) [c](mailto:me@example.com)')
        assert 'href="https://example.com/x"' in html
        assert 'href="/s/abc123"' in html
        assert 'href="mailto:me@example.com"' in html

    def test_render_markdown_code_escaped_once(self):
        html = render_markdown('```\nif a < b and c == "x":\n```\n\nInline `a < b` too')
        assert 'if a &lt; b' in html
        assert '<code>a &lt; b</code>' in html
        assert '&amp;lt;' not in html
        assert '&amp;quot;' not in html

    def test_is_safe_link(self):
        assert is_safe_link('https://example.com')
        assert is_safe_link('#c_abc')
        assert not is_safe_link('java\tscript:alert(1)')
        assert not is_safe_link('&#106;avascript:alert(1)')

    def test_render_markdown_empty(self):
        assert render_markdown('') == ''

    def test_truncate(self):
        assert truncate('hello world', 8) == 'hello...'
        assert truncate('short', 10) == 'short'

    @given(length=st.integers(min_value=1, max_value=20))
    @settings(max_examples=20)
    def test_short_id_alphabet(self, length):
        short_id = generate_short_id(length)
        assert len(short_id) == length
        assert short_id == short_id.lower()
        assert short_id.isalnum()


class TestEncryption:

    def test_round_trip(self):
        token = encrypt('meet me at noon')
        assert token != 'meet me at noon'
        assert decrypt(token) == 'meet me at noon'

    def test_fresh_iv_per_call(self):
        assert encrypt('same text') != encrypt('same text')

    def test_tampered_value_fails(self):
        data = bytearray(base64.b64decode(encrypt('secret')))
        data[-1] ^= 0x01
        with pytest.raises(EncryptionError):
            decrypt(base64.b64encode(bytes(data)).decode('ascii'))

    def test_rejects_bad_input(self):
        with pytest.raises(EncryptionError):
            encrypt('')
        with pytest.raises(EncryptionError):
            decrypt('not base64!!')
        with pytest.raises(EncryptionError):
            decrypt(base64.b64encode(b'short').decode('ascii'))


class TestRateLimitService:

    @pytest.fixture
    def limiter(self):
        return RateLimitService({'posting': RateLimitConfig(max_requests=2, window_seconds=60)})

    def test_allows_up_to_limit(self, limiter):
        assert limiter.is_allowed('posting', 'user:1')
        assert limiter.is_allowed('posting', 'user:1')
        assert not limiter.is_allowed('posting', 'user:1')
        assert limiter.get_remaining_attempts('posting', 'user:1') == 0

    def test_identifiers_are_independent(self, limiter):
        limiter.is_allowed('posting', 'user:1')
        limiter.is_allowed('posting', 'user:1')
        assert limiter.is_allowed('posting', 'user:2')

    def test_check_raises_rate_limited(self, limiter):
        limiter.check('posting', 'user:1')
        limiter.check('posting', 'user:1')
        with pytest.raises(RateLimited) as exc_info:
            limiter.check('posting', 'user:1')

        error = exc_info.value
        assert error.status_code == 429
        assert error.retryable is True
        assert error.details['limit'] == 2
        assert 0 < error.details['retry_after'] <= 60

    def test_reset_limit(self, limiter):
        limiter.is_allowed('posting', 'user:1')
        limiter.is_allowed('posting', 'user:1')
        limiter.reset_limit('posting', 'user:1')
        assert limiter.get_remaining_attempts('posting', 'user:1') == 2
        assert limiter.get_reset_time('posting', 'user:1') == 0

    def test_unknown_action_is_unlimited(self, limiter):
        for _ in range(10):
            assert limiter.is_allowed('unknown', 'user:1')
        assert limiter.get_remaining_attempts('unknown', 'user:1') is None

    def test_config_validation(self):
        with pytest.raises(ValueError):
            RateLimitConfig(max_requests=0, window_seconds=10)
        with pytest.raises(ValueError):
            RateLimitConfig(max_requests=1, window_seconds=0)


class TestCacheService:

    @pytest.fixture
    def service(self):
        return CacheService(prefix='test')

    def test_remember_computes_once(self, service):
        calls = []

        def load():
            calls.append(1)
            return {'value': 42}

        assert service.remember('answer', 60, load, namespace='stories') == {'value': 42}
        assert service.remember('answer', 60, load, namespace='stories') == {'value': 42}
        assert len(calls) == 1

    def test_none_is_not_cached(self, service):
        calls = []

        def load():
            calls.append(1)
            return None

        service.remember('missing', 60, load)
        service.remember('missing', 60, load)
        assert len(calls) == 2

    def test_invalidate_namespace(self, service):
        service.set('front', [1, 2, 3], namespace='stories')
        service.set('profile', {'karma': 1}, namespace='users')

        service.invalidate_namespace('stories')

        assert service.get('front', namespace='stories') is None
        assert service.get('profile', namespace='users') == {'karma': 1}

    def test_invalidate_story_clears_recommendations(self, service):
        service.set('user:1:20', ['x'], namespace='recommendations')
        service.invalidate_story(7)
        assert service.get('user:1:20', namespace='recommendations') is None

    def test_stats(self, service):
        service.get('nothing')
        service.set('something', 1)
        service.get('something')

        stats = service.get_stats()
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['hit_rate'] == 0.5


class TestErrors:

    def test_envelope(self):
        error = NotFound('Story not found')
        assert error.to_dict() == {
            'error': {'code': 'NOT_FOUND', 'message': 'Story not found', 'retryable': False}
        }

    def test_details_included_when_present(self):
        error = AppError('Boom', status_code=418, code='TEAPOT', details={'why': 'tea'})
        body = error.to_dict()['error']
        assert error.status_code == 418
        assert body['code'] == 'TEAPOT'
        assert body['details'] == {'why': 'tea'}


class TestImports:
    """Each core module imports cleanly in a fresh process."""

    @pytest.mark.parametrize('module', [
        'apps.core.exceptions',
        'apps.core.authentication',
        'apps.core.utils',
        'apps.core.utils.params',
    ])
    def test_first_import(self, module):
        env = dict(os.environ, DJANGO_SETTINGS_MODULE='config.test_settings')
        result = subprocess.run(
            [sys.executable, '-c', f'import django; django.setup(); import {module}'],
            cwd=BACKEND_DIR, env=env, capture_output=True, text=True,
        )
        assert result.returncode == 0, result.stderr
