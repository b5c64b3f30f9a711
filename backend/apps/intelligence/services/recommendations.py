"""
Story recommendations.

Personalized recommendations blend three algorithms (collaborative filtering,
content-based scoring and trending) into one ranking, then spread it across
tags and domains and favor fresh stories. Anonymous users get the general
popular-plus-trending mix.

Entries are plain dictionaries keyed by story id so they can be cached:
    {'story_id', 'total_score', 'algorithm_scores', 'reasons'}
"""

import logging
from collections import Counter
from datetime import timedelta
from typing import Dict, List, Optional

from django.db.models import Count
from django.utils import timezone

from apps.authentication.models import User
from apps.core.services import cache_service
from apps.stories.models import HiddenStory, Story, Tagging
from apps.votes.models import Vote
from .. import similarity

logger = logging.getLogger(__name__)


RECOMMENDATION_CONFIG = {
    'cache_ttl': 3600,
    'hybrid_weights': {
        'collaborative': 0.4,
        'content_based': 0.4,
        'trending': 0.2,
    },
    'weights': {
        'collaborative': 1.0,
        'content_domain': 0.8,
        'content_similarity': 0.9,
    },
    'diversity': {
        'max_per_tag': 3,
        'max_per_domain': 2,
        'penalty': 0.7,
    },
    'freshness': {
        'boost_hours': 24,
        'factor': 0.3,
    },
    'trending': {
        'window_hours': 48,
        'min_score': 0.1,
        'max_age_hours': 168,
        'engagement_weight': 1.5,
        'gravity': 1.8,
        'cache_ttl': 1800,
    },
    'similar_users': 50,
    'recent_likes': 10,
    'title_match_threshold': 0.3,
    'max_candidates': 500,
}

NOT_RECOMMENDED = 'This story was not recommended to you.'


def _add(scores: Dict[int, dict], story_id: int, amount: float, reason: Optional[str] = None) -> None:
    entry = scores.setdefault(story_id, {'score': 0.0, 'reasons': []})
    entry['score'] += amount
    if reason and reason not in entry['reasons']:
        entry['reasons'].append(reason)


def _top(scores: Dict[int, dict], limit: int) -> Dict[int, dict]:
    ranked = sorted(scores.items(), key=lambda item: item[1]['score'], reverse=True)
    return dict(ranked[:limit])


class RecommendationService:

    def __init__(self, config: Optional[dict] = None):
        self.config = config or RECOMMENDATION_CONFIG

    def _visible(self):
        return Story.objects.filter(is_deleted=False, is_expired=False, merged_story__isnull=True)

    def _liked_story_ids(self, user: User) -> List[int]:
        return list(
            Vote.objects.filter(user=user, comment__isnull=True, vote=1)
            .order_by('-created_at').values_list('story_id', flat=True)
        )

    def _seen_story_ids(self, user: User) -> set:
        voted = Vote.objects.filter(user=user, comment__isnull=True).values_list('story_id', flat=True)
        hidden = HiddenStory.objects.filter(user=user).values_list('story_id', flat=True)
        return set(voted) | set(hidden)

    def collaborative(self, user: User, limit: int = 20) -> Dict[int, dict]:
        """
        Stories upvoted by users whose upvotes overlap with this user's.
        """
        liked = self._liked_story_ids(user)
        if not liked:
            return {}

        neighbours = (
            Vote.objects.filter(story_id__in=liked, comment__isnull=True, vote=1)
            .exclude(user=user)
            .values('user_id')
            .annotate(co_votes=Count('id'))
            .order_by('-co_votes')[:self.config['similar_users']]
        )
        user_similarity = {row['user_id']: row['co_votes'] / len(liked) for row in neighbours}
        if not user_similarity:
            return {}

        seen = self._seen_story_ids(user)
        visible = self._visible().values_list('id', flat=True)
        votes = (
            Vote.objects.filter(user_id__in=user_similarity, comment__isnull=True, vote=1, story_id__in=visible)
            .exclude(story_id__in=seen)
            .values_list('user_id', 'story_id')
        )

        scores = {}
        weight = self.config['weights']['collaborative']
        for voter_id, story_id in votes:
            _add(scores, story_id, user_similarity[voter_id] * weight, 'Users similar to you liked this')
        return _top(scores, limit)

    def content_based(self, user: User, limit: int = 20) -> Dict[int, dict]:
        """
        Stories matching the tags, domains and titles of what the user liked.
        """
        liked = self._liked_story_ids(user)
        liked_stories = list(Story.objects.filter(id__in=liked).prefetch_related('tags'))

        favorite_tags = set(user.favorite_tags or [])
        favorite_tags.update(
            Tagging.objects.filter(story_id__in=liked).values_list('tag__tag', flat=True)
        )

        domains = Counter(story.domain for story in liked_stories if story.domain)
        total_domains = sum(domains.values())

        recent_ids = set(liked[:self.config['recent_likes']])
        recent = [story.title for story in liked_stories if story.id in recent_ids]

        if not favorite_tags and not domains and not recent:
            return {}

        seen = self._seen_story_ids(user)
        candidates = (
            self._visible().exclude(id__in=seen).exclude(user=user)
            .prefetch_related('tags').order_by('-created_at')[:self.config['max_candidates']]
        )

        scores = {}
        weights = self.config['weights']
        for story in candidates:
            tags = story.tag_names
            if tags and favorite_tags:
                overlap = favorite_tags.intersection(tags)
                if overlap:
                    _add(scores, story.id, len(overlap) / len(tags),
                         f'Tagged {", ".join(sorted(overlap))}')

            if story.domain and domains.get(story.domain):
                _add(scores, story.id, weights['content_domain'] * domains[story.domain] / total_domains,
                     f'From {story.domain}, which you read')

            if recent:
                best = max(similarity.title_similarity(story.title, title) for title in recent)
                if best > self.config['title_match_threshold']:
                    _add(scores, story.id, weights['content_similarity'] * best,
                         'Similar to stories you liked')

        return _top(scores, limit)

    def trending_score(self, story: Story, now=None) -> float:
        trending = self.config['trending']
        now = now or timezone.now()
        age_hours = max(0.0, (now - story.created_at).total_seconds() / 3600)
        if age_hours > trending['max_age_hours']:
            return 0.0
        engagement = (story.score + story.comments_count) * trending['engagement_weight']
        return engagement / (age_hours + 2) ** trending['gravity']

    def trending(self, limit: int = 20) -> Dict[int, dict]:
        trending = self.config['trending']

        def load():
            now = timezone.now()
            since = now - timedelta(hours=trending['window_hours'])
            scores = {}
            for story in self._visible().filter(created_at__gte=since):
                score = self.trending_score(story, now)
                if score < trending['min_score']:
                    continue
                reasons = []
                if story.score > 10:
                    reasons.append(f'High score ({story.score} points)')
                if story.comments_count > 5:
                    reasons.append(f'Active discussion ({story.comments_count} comments)')
                if (now - story.created_at).total_seconds() < 6 * 3600:
                    reasons.append('Posted recently')
                scores[story.id] = {'score': score, 'reasons': reasons}
            return _top(scores, limit)

        return cache_service.remember(
            f'trending:{limit}', trending['cache_ttl'], load, namespace='recommendations'
        )

    def hybrid_rank(self, results: Dict[str, Dict[int, dict]]) -> Dict[int, dict]:
        """
        Normalize each algorithm by its best score, weight it and sum per story.
        """
        combined = {}
        for algorithm, weight in self.config['hybrid_weights'].items():
            scores = results.get(algorithm) or {}
            best = max((entry['score'] for entry in scores.values()), default=0)
            if best <= 0:
                continue
            for story_id, entry in scores.items():
                item = combined.setdefault(story_id, {
                    'story_id': story_id,
                    'total_score': 0.0,
                    'algorithm_scores': {},
                    'reasons': [],
                })
                item['total_score'] += entry['score'] / best * weight
                item['algorithm_scores'][algorithm] = round(entry['score'], 4)
                for reason in entry['reasons']:
                    if reason not in item['reasons']:
                        item['reasons'].append(reason)
        return combined

    def apply_diversity(self, entries: List[dict], stories: Dict[int, Story]) -> List[dict]:
        diversity = self.config['diversity']
        tag_counts = Counter()
        domain_counts = Counter()

        for entry in sorted(entries, key=lambda item: item['total_score'], reverse=True):
            story = stories.get(entry['story_id'])
            if story is None:
                continue
            tags = story.tag_names
            used = sum(tag_counts[tag] for tag in tags)
            if (tags and used >= diversity['max_per_tag'] * len(tags)) or (
                story.domain and domain_counts[story.domain] >= diversity['max_per_domain']
            ):
                entry['total_score'] *= diversity['penalty']
            tag_counts.update(tags)
            if story.domain:
                domain_counts[story.domain] += 1

        return sorted(entries, key=lambda item: item['total_score'], reverse=True)

    def apply_freshness(self, entries: List[dict], stories: Dict[int, Story]) -> List[dict]:
        freshness = self.config['freshness']
        now = timezone.now()
        for entry in entries:
            story = stories.get(entry['story_id'])
            if story is None:
                continue
            age_hours = (now - story.created_at).total_seconds() / 3600
            if age_hours < freshness['boost_hours']:
                entry['total_score'] *= 1 + (1 - age_hours / freshness['boost_hours']) * freshness['factor']
                if 'Recently posted' not in entry['reasons']:
                    entry['reasons'].append('Recently posted')
        return sorted(entries, key=lambda item: item['total_score'], reverse=True)

    def personalized(self, user: User, limit: int = 20) -> List[dict]:
        def load():
            results = {
                'collaborative': self.collaborative(user, limit * 2),
                'content_based': self.content_based(user, limit * 2),
                'trending': self.trending(limit),
            }
            combined = self.hybrid_rank(results)
            stories = Story.objects.prefetch_related('tags').in_bulk(list(combined))
            entries = self.apply_diversity(list(combined.values()), stories)
            entries = self.apply_freshness(entries, stories)
            for entry in entries:
                entry['total_score'] = round(entry['total_score'], 4)
            return entries[:limit]

        return cache_service.remember(
            f'user:{user.id}:{limit}', self.config['cache_ttl'], load, namespace='recommendations'
        )

    def general(self, limit: int = 20) -> List[dict]:
        """
        Popular and trending stories for anonymous users.
        """
        half = max(1, limit // 2)
        popular = list(self._visible().filter(score__gt=0).order_by('-score', '-created_at')[:half])
        best = max((story.score for story in popular), default=0)

        entries = {}
        for story in popular:
            entries[story.id] = {
                'story_id': story.id,
                'total_score': round(story.score / best, 4) if best else 0.0,
                'algorithm_scores': {'popular': story.score},
                'reasons': ['Popular in the community'],
            }
        for story_id, entry in self.trending(half).items():
            if story_id not in entries:
                entries[story_id] = {
                    'story_id': story_id,
                    'total_score': round(entry['score'], 4),
                    'algorithm_scores': {'trending': round(entry['score'], 4)},
                    'reasons': list(entry['reasons']),
                }

        return sorted(entries.values(), key=lambda item: item['total_score'], reverse=True)[:limit]

    def for_user(self, user: Optional[User], limit: int = 20) -> List[dict]:
        if user is None:
            return self.general(limit)
        return self.personalized(user, limit)

    def explain(self, user: User, story: Story) -> dict:
        for entry in self.personalized(user, 50):
            if entry['story_id'] == story.id:
                return {
                    'story_id': story.id,
                    'short_id': story.short_id,
                    'total_score': entry['total_score'],
                    'algorithm_scores': entry['algorithm_scores'],
                    'reasons': entry['reasons'],
                }
        return {'explanation': NOT_RECOMMENDED}


# Create singleton instance
recommendation_service = RecommendationService()
