"""
Content analysis for story submissions.

Scores a submission ({title, url, description, content, tags}) against
keyword tables: categories, suggested tags, quality, readability,
sentiment, topics, technical level, content type and predicted engagement.
"""

import logging
import re
from collections import Counter
from typing import Dict, List, Optional

from apps.core.utils.text import extract_domain
from .. import similarity

logger = logging.getLogger(__name__)


CATEGORIZATION_CONFIG = {
    'max_categories': 3,
    'max_suggested_tags': 10,
    'max_topics': 5,
    'max_keywords': 50,
    'tag_max_score': 10.0,
    'quality_weights': {
        'length': 1.0,
        'readability': 1.5,
        'structure': 1.0,
        'originality': 2.0,
        'technical_depth': 1.0,
        'title_quality': 1.5,
        'source_credibility': 2.0,
    },
    'technical_thresholds': {
        'advanced_beginner': 10,
        'intermediate': 25,
        'expert': 50,
    },
    'engagement_weights': {
        'title_appeal': 2.0,
        'content_length': 1.0,
        'readability': 1.5,
        'topic_popularity': 1.5,
        'source_authority': 1.0,
    },
    'sentiment': {
        'positive_words': {
            'awesome': 2, 'great': 1, 'excellent': 2, 'amazing': 2,
            'good': 1, 'best': 2, 'fantastic': 2, 'wonderful': 2,
        },
        'negative_words': {
            'terrible': 2, 'awful': 2, 'bad': 1, 'horrible': 2,
            'worst': 2, 'hate': 2, 'sucks': 2, 'disappointing': 1,
        },
    },
    'topic_clusters': {
        'programming': {
            'keywords': {'code': 2, 'programming': 3, 'development': 2, 'software': 2},
            'threshold': 5,
            'max_score': 20,
        },
        'web_development': {
            'keywords': {'web': 2, 'html': 2, 'css': 2, 'javascript': 3, 'frontend': 2},
            'threshold': 4,
            'max_score': 15,
        },
    },
    'content_types': {
        'tutorial': {
            'title_patterns': {'how to': 3, 'tutorial': 3, 'guide': 2, 'step by step': 3},
            'content_patterns': {'step 1': 2, 'first': 1, 'next': 1},
            'url_patterns': {'tutorial': 2, 'guide': 2},
            'threshold': 3,
            'max_score': 10,
        },
        'news': {
            'title_patterns': {'announces': 2, 'releases': 2, 'breaking': 3},
            'content_patterns': {'today': 1, 'announced': 2},
            'url_patterns': {'news': 2, 'blog': 1},
            'threshold': 2,
            'max_score': 8,
        },
    },
}

CATEGORIES = {
    'programming': {
        'keywords': {
            'programming': 3, 'code': 2, 'development': 2, 'software': 2,
            'algorithm': 2, 'data structure': 3, 'function': 1, 'variable': 1,
        },
        'url_patterns': {'github.com': 3, 'stackoverflow.com': 2, 'dev.to': 2},
        'domains': {'github.com': 3, 'gitlab.com': 2},
        'threshold': 5,
        'max_score': 20,
    },
    'web_development': {
        'keywords': {
            'web': 2, 'html': 2, 'css': 2, 'javascript': 3,
            'frontend': 2, 'backend': 2, 'react': 2, 'vue': 2,
        },
        'url_patterns': {'codepen.io': 3, 'jsfiddle.net': 2},
        'domains': {},
        'threshold': 4,
        'max_score': 15,
    },
    'artificial_intelligence': {
        'keywords': {
            'ai': 3, 'artificial intelligence': 4, 'machine learning': 4,
            'neural network': 3, 'deep learning': 3, 'ml': 2,
        },
        'url_patterns': {'arxiv.org': 3, 'kaggle.com': 2},
        'domains': {},
        'threshold': 5,
        'max_score': 18,
    },
}

TECHNICAL_KEYWORDS = {
    'programming_languages': {
        'javascript': 3, 'python': 3, 'java': 3, 'c++': 3, 'c#': 3,
        'php': 2, 'ruby': 2, 'go': 2, 'rust': 2, 'swift': 2, 'kotlin': 2,
    },
    'frameworks': {
        'react': 3, 'angular': 3, 'vue': 3, 'laravel': 2, 'django': 2,
        'express': 2, 'spring': 2, 'rails': 2, 'flask': 2,
    },
    'technologies': {
        'docker': 2, 'kubernetes': 2, 'aws': 2, 'azure': 2, 'gcp': 2,
        'redis': 2, 'mongodb': 2, 'postgresql': 2, 'mysql': 2, 'nginx': 2,
    },
    'concepts': {
        'api': 2, 'rest': 2, 'graphql': 2, 'microservices': 2, 'devops': 2,
        'cicd': 2, 'testing': 1, 'security': 2, 'performance': 1,
    },
}

STOP_WORDS = similarity.STOP_WORDS | frozenset(
    'will would could should may might can this that these those '
    'i you he she it we they me him her us them'.split()
)

CODE_PATTERNS = (
    (re.compile(r'\b[a-zA-Z_][a-zA-Z0-9_]*\s*\([^)]*\)\s*{'), 3.0),
    (re.compile(r'\b(class|function|var|let|const|def|import|from)\b'), 2.0),
    (re.compile(r'[{}();]'), 0.5),
    (re.compile(r'\b[A-Z][a-zA-Z]*[A-Z][a-zA-Z]*\b'), 1.0),
    (re.compile(r'\b[a-z_]+\.[a-z_]+'), 1.5),
)

# Domains whose submissions tend to be primary sources
TRUSTED_DOMAINS = frozenset({
    'github.com', 'gitlab.com', 'arxiv.org', 'stackoverflow.com', 'lwn.net',
    'python.org', 'rust-lang.org', 'kernel.org', 'acm.org', 'ietf.org',
})

ADVICE_QUALITY = 'Consider improving content quality for better engagement'
ADVICE_TAGS = 'Add suggested tags to improve discoverability'
ADVICE_DUPLICATE = 'Duplicate content detected - consider reviewing similar content'
ADVICE_SIMILAR = 'High similarity to existing content - consider adding unique value'
ADVICE_ENGAGEMENT = 'Consider improving title or content structure for better engagement'

_SENTENCE_SPLIT =re.compile(r'[.!?]+')
_NON_LETTER = re.compile(r'[^a-z]')
_SILENT_ENDING = re.compile(r'(?:[^laeiouy]es|ed|[^laeiouy]e)$')
_VOWEL_GROUP = re.compile(r'[aeiouy]{1,2}')
_HEADING = re.compile(r'^#+\s+.+$', re.MULTILINE)
_PARAGRAPH_BREAK = re.compile(r'\n\s*\n')
_BULLET = re.compile(r'^[*\-+]\s+.+$', re.MULTILINE)
_NUMBERED = re.compile(r'^\d+\.\s+.+$', re.MULTILINE)


def count_syllables(word: str) -> int:
    word = _NON_LETTER.sub('', word.lower())
    if len(word) <= 3:
        return 1
    word = _SILENT_ENDING.sub('', word)
    if word.startswith('y'):
        word = word[1:]
    return max(1, len(_VOWEL_GROUP.findall(word)))


def readability(text: str) -> float:
    """Flesch reading ease scaled to [0, 1]"""
    text = (text or '').strip()
    if not text:
        return 0.0

    sentences = _SENTENCE_SPLIT.split(text)
    words = text.split()
    syllables = sum(count_syllables(word) for word in words)

    score = 206.835 - 1.015 * (len(words) / len(sentences)) - 84.6 * (syllables / len(words))
    return max(0.0, min(100.0, score)) / 100


def _top(scored: Dict[str, dict], limit: int) -> Dict[str, dict]:
    ranked = sorted(scored.items(), key=lambda item: item[1]['score'], reverse=True)
    return dict(ranked[:limit])


def quality_grade(score: float) -> str:
    if score > 0.8:
        return 'A'
    if score > 0.6:
        return 'B'
    if score > 0.4:
        return 'C'
    return 'D'


def engagement_level(score: float) -> str:
    if score > 0.8:
        return 'high'
    if score > 0.5:
        return 'medium'
    return 'low'


class ContentCategorizationService:

    def __init__(self, config: Optional[dict] = None):
        self.config = config or CATEGORIZATION_CONFIG

    def extract_keywords(self, text: str, min_length: int = 3) -> Dict[str, float]:
        """Term frequency of each significant word, scaled to percent"""
        words = re.split(r'\W+', (text or '').lower())
        total = len(words)
        counts = Counter(
            word for word in words if len(word) >= min_length and word not in STOP_WORDS
        )
        return {
            word: count / total * 100
            for word, count in counts.most_common(self.config['max_keywords'])
        }

    def detect_categories(self, text: str, url: str = '') -> Dict[str, dict]:
        text = (text or '').lower()
        url = (url or '').lower()

        detected = {}
        for category, rules in CATEGORIES.items():
            score = sum(text.count(keyword) * weight for keyword, weight in rules['keywords'].items())
            score += sum(weight for pattern, weight in rules['url_patterns'].items() if pattern in url)
            score += sum(weight for domain, weight in rules['domains'].items() if domain in url)

            if score >= rules['threshold']:
                detected[category] = {
                    'score': score,
                    'confidence': min(1.0, score / rules['max_score']),
                }
        return _top(detected, self.config['max_categories'])

    def detect_technical_tags(self, text: str) -> Dict[str, float]:
        words = set(re.split(r'[^\w+#]+', (text or '').lower()))
        return {
            keyword: weight
            for keywords in TECHNICAL_KEYWORDS.values()
            for keyword, weight in keywords.items()
            if keyword in words
        }

    def suggest_tags(self, text: str, url: str = '', existing: List[str] = None) -> Dict[str, dict]:
        existing = {tag.lower() for tag in existing or []}
        keywords = self.extract_keywords(text)
        technical = self.detect_technical_tags(text)

        suggestions = {}
        for source, scored in (('content', keywords), ('technical', technical)):
            for tag, score in scored.items():
                if tag in existing or tag in STOP_WORDS or not 2 <= len(tag) <= 50:
                    continue
                if tag in suggestions and suggestions[tag]['score'] >= score:
                    continue
                suggestions[tag] = {
                    'score': score,
                    'confidence': min(1.0, score / self.config['tag_max_score']),
                    'source': source,
                }
        return _top(suggestions, self.config['max_suggested_tags'])

    def structure_score(self, text: str) -> float:
        if not text:
            return 0.0

        score = 0.1
        headings = len(_HEADING.findall(text))
        if headings:
            score += min(0.4, headings * 0.1)
        paragraphs = _PARAGRAPH_BREAK.split(text.strip())
        if len(paragraphs) > 1:
            score += min(0.3, len(paragraphs) * 0.05)
        bullets = len(_BULLET.findall(text))
        if bullets:
            score += min(0.2, bullets * 0.05)
        numbered = len(_NUMBERED.findall(text))
        if numbered:
            score += min(0.1, numbered * 0.02)
        return min(1.0, score)

    def originality_score(self, text: str) -> float:
        """Share of distinct significant words; repetitive text scores low"""
        words = similarity.extract_words(text)
        if not words:
            return 0.0
        return len(set(words)) / len(words)

    def technical_score(self, text: str) -> float:
        text = (text or '').lower()
        score = 0.0
        for keywords in TECHNICAL_KEYWORDS.values():
            score += sum(text.count(keyword) * weight for keyword, weight in keywords.items())
        return score

    def source_credibility(self, url: str) -> float:
        domain = extract_domain(url)
        if not domain:
            return 0.5
        if domain in TRUSTED_DOMAINS or any(domain.endswith(f'.{trusted}') for trusted in TRUSTED_DOMAINS):
            return 0.9
        return 0.7

    def calculate_quality(self, content: dict) -> dict:
        text = similarity.extract_text(content)
        title = content.get('title') or ''
        weights = self.config['quality_weights']

        if not text and not title:
            return {
                'overall': 0.1,
                'aspects': dict.fromkeys(weights, 0.0),
                'grade': 'F',
            }

        depth_threshold = self.config['technical_thresholds']['expert']
        aspects = {
            'length': min(1.0, len(text) / 2000),
            'readability': readability(text),
            'structure': self.structure_score(content.get('content') or content.get('description') or ''),
            'originality': self.originality_score(text),
            'technical_depth': min(1.0, self.technical_score(text) / depth_threshold),
            'title_quality': min(1.0, len(title) / 60),
            'source_credibility': self.source_credibility(content.get('url') or ''),
        }
        overall = min(1.0, sum(aspects[name] * weight for name, weight in weights.items()) / sum(weights.values()))
        return {
            'overall': round(overall, 4),
            'aspects': {name: round(value, 4) for name, value in aspects.items()},
            'grade': quality_grade(overall),
        }

    def analyze_sentiment(self, text: str) -> dict:
        text = (text or '').lower()
        words = self.config['sentiment']
        positive = sum(text.count(word) * weight for word, weight in words['positive_words'].items())
        negative = sum(text.count(word) * weight for word, weight in words['negative_words'].items())

        total = positive + negative
        if total == 0:
            return {'sentiment': 'neutral', 'score': 0.0, 'confidence': 0.5,
                    'positive_score': 0, 'negative_score': 0}

        score = (positive - negative) / total
        if score > 0.1:
            sentiment = 'positive'
        elif score < -0.1:
            sentiment = 'negative'
        else:
            sentiment = 'neutral'
        return {
            'sentiment': sentiment,
            'score': round(score, 4),
            'confidence': round(abs(score), 4),
            'positive_score': positive,
            'negative_score': negative,
        }

    def extract_topics(self, text: str) -> Dict[str, dict]:
        keywords = self.extract_keywords(text)
        topics = {}
        for topic, cluster in self.config['topic_clusters'].items():
            matched = [word for word in cluster['keywords'] if word in keywords]
            score = sum(keywords[word] * cluster['keywords'][word] for word in matched)
            if score > cluster['threshold']:
                topics[topic] = {
                    'score': round(score, 4),
                    'confidence': min(1.0, score / cluster['max_score']),
                    'keywords': matched,
                }
        return _top(topics, self.config['max_topics'])

    def technical_level(self, text: str) -> str:
        score = self.technical_score(text)
        # Code patterns are matched against the original casing
        for pattern, weight in CODE_PATTERNS:
            score += len(pattern.findall(text or '')) * weight

        thresholds = self.config['technical_thresholds']
        if score > thresholds['expert']:
            return 'expert'
        if score > thresholds['intermediate']:
            return 'intermediate'
        if score > thresholds['advanced_beginner']:
            return 'advanced_beginner'
        return 'beginner'

    def detect_content_type(self, content: dict) -> dict:
        fields = {
            'title_patterns': (content.get('title') or '').lower(),
            'content_patterns': similarity.extract_text(content).lower(),
            'url_patterns': (content.get('url') or '').lower(),
        }

        scores = {}
        for content_type, rules in self.config['content_types'].items():
            score = sum(
                weight
                for field, haystack in fields.items()
                for pattern, weight in rules[field].items()
                if pattern in haystack
            )
            if score > rules['threshold']:
                scores[content_type] = {
                    'score': score,
                    'confidence': min(1.0, score / rules['max_score']),
                }

        ranked = _top(scores, len(scores))
        primary = next(iter(ranked), 'article')
        return {
            'primary': primary,
            'all_scores': ranked,
            'confidence': ranked[primary]['confidence'] if primary in ranked else 0.5,
        }

    def title_appeal(self, title: str) -> float:
        """Titles of roughly 30 to 80 characters read best in a listing"""
        length = len((title or '').strip())
        if length == 0:
            return 0.0
        if 30 <= length <= 80:
            return 1.0
        if length < 30:
            return length / 30
        return max(0.3, 1 - (length - 80) / 100)

    def predict_engagement(self, content: dict, topics: Dict[str, dict] = None) -> dict:
        text = similarity.extract_text(content)
        if topics is None:
            topics = self.extract_topics(text)

        factors = {
            'title_appeal': self.title_appeal(content.get('title') or ''),
            'content_length': min(1.0, len(text) / 1500),
            'readability': readability(text),
            'topic_popularity': max((topic['confidence'] for topic in topics.values()), default=0.0),
            'source_authority': self.source_credibility(content.get('url') or ''),
        }
        weights = self.config['engagement_weights']
        score = min(1.0, sum(factors[name] * weight for name, weight in weights.items()) / sum(weights.values()))
        return {
            'predicted_score': round(score, 4),
            'factors': {name: round(value, 4) for name, value in factors.items()},
            'level': engagement_level(score),
        }

    def analyze(self, content: dict) -> dict:
        """
        Full analysis of a submission.

        Args:
            content: {title, url, description, content, tags}

        Returns:
            Dictionary with categories, suggested_tags, quality_score,
            readability, sentiment, topics, technical_level, content_type
            and engagement_prediction
        """
        text = similarity.extract_text(content)
        url = content.get('url') or ''
        topics = self.extract_topics(text)

        analysis = {
            'categories': self.detect_categories(text, url),
            'suggested_tags': self.suggest_tags(text, url, content.get('tags')),
            'quality_score': self.calculate_quality(content),
            'readability': round(readability(text), 4),
            'sentiment': self.analyze_sentiment(text),
            'topics': topics,
            'technical_level': self.technical_level(text),
            'content_type': self.detect_content_type(content),
            'engagement_prediction': self.predict_engagement(content, topics),
        }
        logger.debug(
            f'Analyzed "{(content.get("title") or "")[:50]}": '
            f'level={analysis["technical_level"]} type={analysis["content_type"]["primary"]}'
        )
        return analysis

    def recommendations(self, analysis: dict, duplicate_check: dict) -> List[str]:
        advice = []
        if analysis['quality_score']['overall'] < 0.5:
            advice.append(ADVICE_QUALITY)
        if analysis['suggested_tags']:
            advice.append(ADVICE_TAGS)
        if duplicate_check['is_duplicate']:
            advice.append(ADVICE_DUPLICATE)
        elif duplicate_check['similarity_score'] > 0.7:
            advice.append(ADVICE_SIMILAR)
        if analysis['engagement_prediction']['predicted_score'] < 0.5:
            advice.append(ADVICE_ENGAGEMENT)
        return advice


content_categorization_service = ContentCategorizationService()
