"""
Duplicate detection for submitted stories.

A submission is compared against stored stories in stages: an exact match on
the normalized URL, then URL variants on the same domain, then title and
content similarity combined into one weighted score.
"""

import hashlib
import logging
from functools import reduce
from operator import or_
from typing import List, Optional

from django.db.models import Q

from apps.core.services import cache_service
from apps.core.utils.text import extract_domain, normalize_url
from apps.stories.models import Story
from .. import similarity

logger = logging.getLogger(__name__)


DUPLICATE_CONFIG = {
    'duplicate_threshold': 0.85,
    'cache_ttl': 3600,
    'similarity_weights': {
        'title': 0.4,
        'content': 0.5,
        'url': 0.1,
    },
    'url_variant_threshold': 0.7,
    'url_variant_duplicate': 0.8,
    'max_url_variants': 20,
    'title_threshold': 0.6,
    'content_threshold': 0.3,
    'max_candidates': 200,
    'max_query_words': 10,
}

RECOMMEND_MERGE = 'This content appears to be a duplicate. Consider merging with existing content.'
RECOMMEND_REVIEW = 'High similarity detected. Review for potential duplication.'
RECOMMEND_CROSS_REFERENCE = 'Similar content exists. Consider cross-referencing.'


class DuplicateDetectionService:

    def __init__(self, config: Optional[dict] = None):
        self.config = config or DUPLICATE_CONFIG

    def _story_summary(self, story: Story) -> dict:
        return {
            'id': story.id,
            'short_id': story.short_id,
            'title': story.title,
            'url': story.url or '',
            'permalink': story.get_absolute_url(),
            'created_at': story.created_at.isoformat() if story.created_at else None,
        }

    def _candidates(self, exclude_id=None):
        stories = Story.objects.filter(is_deleted=False, merged_story__isnull=True)
        if exclude_id is not None:
            stories = stories.exclude(id=exclude_id)
        return stories

    def _words_query(self, words: List[str], fields) -> Optional[Q]:
        unique = list(dict.fromkeys(words))[:self.config['max_query_words']]
        if not unique:
            return None
        return reduce(or_, (Q(**{f'{field}__icontains': word}) for word in unique for field in fields))

    def find_exact_url_duplicates(self, url: str, exclude_id=None) -> List[dict]:
        normalized = normalize_url(url)
        if not normalized:
            return []

        cache_key = f'duplicates:url:{hashlib.md5(normalized.encode("utf-8")).hexdigest()}:{exclude_id}'

        def load():
            return [
                self._story_summary(story)
                for story in self._candidates(exclude_id).filter(normalized_url=normalized).order_by('created_at')
            ]

        return cache_service.remember(cache_key, self.config['cache_ttl'], load, namespace='stories') or []

    def find_url_variants(self, url: str, exclude_id=None) -> List[dict]:
        domain = extract_domain(url)
        if not domain:
            return []

        variants = []
        stories = self._candidates(exclude_id).filter(domain=domain).exclude(url__isnull=True)
        for story in stories.order_by('-created_at')[:self.config['max_candidates']]:
            score = similarity.url_similarity(url, story.url)
            if score > self.config['url_variant_threshold']:
                variants.append({**self._story_summary(story), 'similarity': round(score, 4)})

        variants.sort(key=lambda item: item['similarity'], reverse=True)
        return variants[:self.config['max_url_variants']]

    def find_title_similar(self, title: str, exclude_id=None) -> List[dict]:
        query = self._words_query(similarity.extract_words(title), ('title',))
        if query is None:
            return []

        results = []
        for story in self._candidates(exclude_id).filter(query)[:self.config['max_candidates']]:
            score = similarity.title_similarity(title, story.title)
            if score > self.config['title_threshold']:
                results.append({'story': story, 'title_similarity': score})
        return results

    def find_content_similar(self, text: str, exclude_id=None) -> List[dict]:
        query = self._words_query(similarity.extract_words(text), ('title', 'description'))
        if query is None:
            return []

        results = []
        for story in self._candidates(exclude_id).filter(query)[:self.config['max_candidates']]:
            story_text = similarity.extract_text({'title': story.title, 'description': story.description})
            score = similarity.content_similarity(text, story_text)
            if score > self.config['content_threshold']:
                results.append({
                    'story': story,
                    'content_similarity': score,
                    'cosine_similarity': similarity.cosine_similarity(text, story_text),
                    'jaccard_similarity': similarity.jaccard_similarity(text, story_text),
                })
        return results

    def combine_scores(self, title_similar: List[dict], content_similar: List[dict], url: str) -> List[dict]:
        """
        Merge title and content matches per story into one weighted score.
        """
        weights = self.config['similarity_weights']
        combined = {}

        def entry(story):
            if story.id not in combined:
                combined[story.id] = {
                    **self._story_summary(story),
                    'title_similarity': 0.0,
                    'content_similarity': 0.0,
                    'url_similarity': 0.0,
                    'total_similarity': 0.0,
                    'match_reasons': [],
                }
            return combined[story.id]

        for item in title_similar:
            current = entry(item['story'])
            current['title_similarity'] = item['title_similarity']
            if item['title_similarity'] > 0.8:
                current['match_reasons'].append('Very similar title')
            elif item['title_similarity'] > 0.6:
                current['match_reasons'].append('Similar title')

        for item in content_similar:
            current = entry(item['story'])
            current['content_similarity'] = item['content_similarity']
            current['cosine_similarity'] = item.get('cosine_similarity', 0.0)
            current['jaccard_similarity'] = item.get('jaccard_similarity', 0.0)
            if item['content_similarity'] > 0.8:
                current['match_reasons'].append('Very similar content')
            elif item['content_similarity'] > 0.6:
                current['match_reasons'].append('Similar content')

        for current in combined.values():
            if url and current['url']:
                current['url_similarity'] = similarity.url_similarity(url, current['url'])
                if current['url_similarity'] > 0.7:
                    current['match_reasons'].append('Similar URL')

            current['total_similarity'] = (
                current['title_similarity'] * weights['title']
                + current['content_similarity'] * weights['content']
                + current['url_similarity'] * weights['url']
            ) / sum(weights.values())

        return sorted(combined.values(), key=lambda item: item['total_similarity'], reverse=True)

    def recommendations(self, is_duplicate: bool, score: float) -> List[str]:
        if is_duplicate:
            return [RECOMMEND_MERGE]
        if score > 0.7:
            return [RECOMMEND_REVIEW]
        if score > 0.5:
            return [RECOMMEND_CROSS_REFERENCE]
        return []

    def check_duplicates(self, content: dict, exclude_id=None, limit: int = 10) -> dict:
        """
        Check a submission ({title, url, description, content}) against stored stories.

        Returns:
            Dictionary with is_duplicate, similarity_score, duplicate_type,
            similar_content, exact_duplicates, url_variants,
            content_fingerprint and recommendations
        """
        title = content.get('title') or ''
        url = content.get('url') or ''

        result = {
            'is_duplicate': False,
            'similarity_score': 0.0,
            'duplicate_type': None,
            'similar_content': [],
            'exact_duplicates': [],
            'url_variants': [],
            'content_fingerprint': similarity.content_fingerprint(content),
            'recommendations': [],
        }

        if url:
            exact = self.find_exact_url_duplicates(url, exclude_id)
            if exact:
                result.update({
                    'is_duplicate': True,
                    'similarity_score': 1.0,
                    'duplicate_type': 'exact_url',
                    'exact_duplicates': exact,
                    'recommendations': self.recommendations(True, 1.0),
                })
                return result

            variants = self.find_url_variants(url, exclude_id)
            result['url_variants'] = variants
            if variants and variants[0]['similarity'] > self.config['url_variant_duplicate']:
                result.update({
                    'is_duplicate': True,
                    'similarity_score': variants[0]['similarity'],
                    'duplicate_type': 'url_variant',
                    'recommendations': self.recommendations(True, variants[0]['similarity']),
                })
                return result

        title_similar = self.find_title_similar(title, exclude_id) if title else []
        text = similarity.extract_text(content)
        content_similar = self.find_content_similar(text, exclude_id) if text else []

        combined = self.combine_scores(title_similar, content_similar, url)
        result['similar_content'] = combined[:limit]

        if combined:
            best = combined[0]['total_similarity']
            result['similarity_score'] = round(best, 4)
            if best > self.config['duplicate_threshold']:
                result['is_duplicate'] = True
                result['duplicate_type'] = 'content_similarity'
            result['recommendations'] = self.recommendations(result['is_duplicate'], best)

        logger.debug(
            f'Duplicate check for "{title[:50]}": duplicate={result["is_duplicate"]} '
            f'score={result["similarity_score"]}'
        )
        return result

    def find_similar_stories(self, story: Story, limit: int = 10) -> List[dict]:
        content = {'title': story.title, 'url': story.url or '', 'description': story.description}
        title_similar = self.find_title_similar(story.title, exclude_id=story.id)
        content_similar = self.find_content_similar(similarity.extract_text(content), exclude_id=story.id)
        return self.combine_scores(title_similar, content_similar, story.url or '')[:limit]


# Create singleton instance
duplicate_detection_service = DuplicateDetectionService()
