"""
Text and URL similarity measures used for duplicate detection and
recommendations. All scores are floats in [0, 1].
"""

import hashlib
import math
import re
from collections import Counter
from typing import Dict, List, Set
from urllib.parse import urlsplit

STOP_WORDS = frozenset(
    'the a an and or but in on at to for of with by is are was were be '
    'been have has had do does did'.split()
)

CONTENT_METRIC_WEIGHTS = {
    'cosine': 0.4,
    'jaccard': 0.3,
    'levenshtein': 0.2,
    'shingle': 0.1,
}

LEVENSHTEIN_MAX_CHARS = 255
FINGERPRINT_WORDS = 50

_NON_WORD = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')
_WORD_SPLIT = re.compile(r'\W+')
_SCHEME = re.compile(r'^https?://')


def normalize_text(text: str) -> str:
    text = _NON_WORD.sub(' ', (text or '').lower())
    return _WHITESPACE.sub(' ', text).strip()


def extract_words(text: str) -> List[str]:
    """Significant words in order, duplicates kept"""
    return [
        word for word in _WORD_SPLIT.split((text or '').lower())
        if len(word) >= 3 and word not in STOP_WORDS
    ]


def tf_vector(text: str) -> Dict[str, float]:
    words = extract_words(text)
    if not words:
        return {}
    total = len(words)
    return {word: count / total for word, count in Counter(words).items()}


def cosine_similarity(text1: str, text2: str) -> float:
    vector1 = tf_vector(text1)
    vector2 = tf_vector(text2)
    if not vector1 or not vector2:
        return 0.0

    dot = sum(weight * vector2.get(word, 0.0) for word, weight in vector1.items())
    magnitude1 = math.sqrt(sum(weight * weight for weight in vector1.values()))
    magnitude2 = math.sqrt(sum(weight * weight for weight in vector2.values()))
    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0
    return dot / (magnitude1 * magnitude2)


def jaccard_similarity(text1: str, text2: str) -> float:
    """
    Words of the first text found in the second, over the unique words of both.

    The numerator counts repeated words of the first text each time they occur.
    """
    words1 = extract_words(text1)
    words2 = extract_words(text2)
    if not words1 or not words2:
        return 0.0

    present = set(words2)
    intersection = sum(1 for word in words1 if word in present)
    union = len(set(words1) | present)
    return intersection / union if union else 0.0


def levenshtein_distance(s1: str, s2: str) -> int:
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    if not s2:
        return len(s1)

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, 1):
        current = [i]
        for j, c2 in enumerate(s2, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (c1 != c2),
            ))
        previous = current
    return previous[-1]


def levenshtein_similarity(text1: str, text2: str) -> float:
    text1 = text1 or ''
    text2 = text2 or ''
    max_len = max(len(text1), len(text2))
    if max_len == 0:
        return 1.0

    distance = levenshtein_distance(text1[:LEVENSHTEIN_MAX_CHARS], text2[:LEVENSHTEIN_MAX_CHARS])
    return 1 - distance / max_len


def shingles(text: str, size: int = 3) -> Set[str]:
    words = extract_words(text)
    return {' '.join(words[i:i + size]) for i in range(len(words) - size + 1)}


def shingle_similarity(text1: str, text2: str, size: int = 3) -> float:
    shingles1 = shingles(text1, size)
    shingles2 = shingles(text2, size)
    if not shingles1 or not shingles2:
        return 0.0
    return len(shingles1 & shingles2) / len(shingles1 | shingles2)


def content_similarity(text1: str, text2: str) -> float:
    if not text1 or not text2:
        return 0.0

    text1 = normalize_text(text1)
    text2 = normalize_text(text2)
    scores = {
        'cosine': cosine_similarity(text1, text2),
        'jaccard': jaccard_similarity(text1, text2),
        'levenshtein': levenshtein_similarity(text1, text2),
        'shingle': shingle_similarity(text1, text2),
    }
    weighted = sum(scores[name] * weight for name, weight in CONTENT_METRIC_WEIGHTS.items())
    return max(0.0, min(1.0, weighted / sum(CONTENT_METRIC_WEIGHTS.values())))


def _set_jaccard(set1: set, set2: set) -> float:
    union = set1 | set2
    return len(set1 & set2) / len(union) if union else 0.0


def _trigrams(text: str) -> Set[str]:
    if len(text) < 3:
        return {text}
    return {text[i:i + 3] for i in range(len(text) - 2)}


def title_similarity(title1: str, title2: str) -> float:
    title1 = normalize_text(title1)
    title2 = normalize_text(title2)
    if not title1 or not title2:
        return 0.0
    if title1 == title2:
        return 1.0

    word_score = _set_jaccard(set(title1.split()), set(title2.split()))
    ngram_score = _set_jaccard(_trigrams(title1), _trigrams(title2))
    return levenshtein_similarity(title1, title2) * 0.3 + word_score * 0.4 + ngram_score * 0.3


def normalize_for_comparison(url: str) -> str:
    """
    Host and path of a URL, lowercased, without scheme, www. or trailing slash.
    """
    url = (url or '').strip().lower()
    url = _SCHEME.sub('', url)
    if url.startswith('www.'):
        url = url[4:]
    url = url.rstrip('/')

    try:
        parts = urlsplit(f'http://{url}')
        host = parts.hostname or ''
    except ValueError:
        return url

    path = parts.path
    return host + path if path and path != '/' else host


def url_similarity(url1: str, url2: str) -> float:
    url1 = normalize_for_comparison(url1)
    url2 = normalize_for_comparison(url2)
    if not url1 or not url2:
        return 0.0
    if url1 == url2:
        return 1.0

    host1, _, path1 = url1.partition('/')
    host2, _, path2 = url2.partition('/')
    if host1 == host2:
        return 0.7 + 0.3 * levenshtein_similarity(path1, path2)
    return 0.5 * levenshtein_similarity(host1, host2)


def hash_text(text: str) -> str:
    return hashlib.md5(normalize_text(text).encode('utf-8')).hexdigest()


def extract_text(content: dict) -> str:
    return ' '.join(
        (content.get(field) or '') for field in ('title', 'description', 'content')
    ).strip()


def content_fingerprint(content: dict) -> dict:
    text = extract_text(content)
    title = content.get('title') or ''
    return {
        'title_hash': hash_text(title),
        'content_hash': hash_text(text),
        'url_hash': hash_text(normalize_for_comparison(content.get('url') or '')),
        'combined_hash': hash_text(f'{title} {text}'),
    }


def text_fingerprint(text: str) -> str:
    significant = extract_words(text)[:FINGERPRINT_WORDS]
    return hashlib.md5(''.join(significant).encode('utf-8')).hexdigest()


SIMILARITY_BANDS = (
    (0.9, 'Nearly identical'),
    (0.8, 'Very similar'),
    (0.6, 'Similar'),
    (0.4, 'Somewhat similar'),
    (0.2, 'Slightly similar'),
)


def interpret_similarity(score: float) -> str:
    for floor, label in SIMILARITY_BANDS:
        if score > floor:
            return label
    return 'Different'


def similarity_metrics(content1: str, content2: str, title1: str = '', title2: str = '',
                       url1: str = '', url2: str = '') -> Dict[str, float]:
    """
    Overall, cosine and jaccard scores for two texts, plus title and url
    scores when both sides of the pair are given.
    """
    metrics = {
        'overall': content_similarity(content1, content2),
        'cosine': cosine_similarity(content1, content2),
        'jaccard': jaccard_similarity(content1, content2),
    }
    if title1 and title2:
        metrics['title'] = title_similarity(title1, title2)
    if url1 and url2:
        metrics['url'] = url_similarity(url1, url2)
    return {name: round(score, 4) for name, score in metrics.items()}
