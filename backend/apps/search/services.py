"""
Search over stories, comments and users.

Query syntax:
    word        must appear somewhere in the item
    "a phrase"  exact phrase
    +word       required
    -word       excluded
    pre*        word starting with "pre"
    tag:x domain:x user:x type:stories|comments|users
"""

import logging
import re
from typing import List, Optional

from django.db.models import Q

from apps.authentication.models import User
from apps.comments.models import Comment
from apps.core.exceptions import ValidationFailed
from apps.core.services import rate_limit_service
from apps.stories.models import Story, Tag

logger = logging.getLogger(__name__)

PHRASE_PATTERN = re.compile(r'"([^"]+)"')
FILTER_KEYS = ('tag', 'domain', 'user', 'type')
SEARCH_TYPES = ('all', 'stories', 'comments', 'users')
SEARCH_ORDERS = ('relevance', 'newest', 'score')
CANDIDATE_LIMIT = 500


class SearchService:

    def parse_query(self, q: str) -> dict:
        parsed = {
            'original': q or '',
            'terms': [],
            'phrases': [],
            'required': [],
            'excluded': [],
            'wildcards': [],
            'filters': {},
        }

        text = q or ''
        parsed['phrases'] = [p.strip() for p in PHRASE_PATTERN.findall(text) if p.strip()]
        text = PHRASE_PATTERN.sub(' ', text)

        for token in text.split():
            if token.startswith('+') and len(token) > 1:
                parsed['required'].append(token[1:])
            elif token.startswith('-') and len(token) > 1:
                parsed['excluded'].append(token[1:])
            elif ':' in token and token.split(':', 1)[0].lower() in FILTER_KEYS and token.split(':', 1)[1]:
                key, value = token.split(':', 1)
                parsed['filters'][key.lower()] = value
            elif token.endswith('*') and re.fullmatch(r'\w+\*', token):
                parsed['wildcards'].append(token[:-1])
            elif token != '*':
                parsed['terms'].append(token)

        return parsed

    def _match_terms(self, parsed: dict) -> List[str]:
        return parsed['terms'] + parsed['phrases'] + parsed['required']

    def _text_q(self, fields, word: str) -> Q:
        query = Q()
        for field in fields:
            query |= Q(**{f'{field}__icontains': word})
        return query

    def _prefix_q(self, fields, prefix: str) -> Q:
        pattern = r'(^|[^a-zA-Z0-9_])' + re.escape(prefix)
        query = Q()
        for field in fields:
            query |= Q(**{f'{field}__iregex': pattern})
        return query

    def _apply_text(self, queryset, fields, parsed: dict):
        for word in self._match_terms(parsed):
            queryset = queryset.filter(self._text_q(fields, word))
        for prefix in parsed['wildcards']:
            queryset = queryset.filter(self._prefix_q(fields, prefix))
        for word in parsed['excluded']:
            queryset = queryset.exclude(self._text_q(fields, word))
        return queryset

    def _relevance(self, parsed: dict, title: str, body: str) -> int:
        title = (title or '').lower()
        body = (body or '').lower()
        words = [w.lower() for w in self._match_terms(parsed) + parsed['wildcards']]
        return sum(2 for w in words if w in title) + sum(1 for w in words if w in body)

    def _order(self, items: list, order: str, relevance) -> list:
        if order == 'newest':
            return sorted(items, key=lambda item: item.created_at, reverse=True)
        if order == 'score':
            return sorted(items, key=lambda item: (item.score, item.created_at), reverse=True)
        return sorted(items, key=lambda item: (relevance(item), item.score, item.created_at), reverse=True)

    def _has_criteria(self, parsed: dict) -> bool:
        return bool(self._match_terms(parsed) or parsed['wildcards'] or parsed['excluded']
                    or set(parsed['filters']) - {'type'})

    def search_stories(self, parsed: dict, order: str) -> List[Story]:
        fields = ('title', 'description', 'url')
        stories = Story.objects.filter(is_deleted=False, merged_story__isnull=True)
        stories = self._apply_text(stories, fields, parsed)

        filters = parsed['filters']
        if filters.get('tag'):
            stories = stories.filter(taggings__tag__tag=filters['tag'].lower())
        if filters.get('domain'):
            domain = filters['domain'].lower()
            stories = stories.filter(Q(domain=domain) | Q(domain__endswith=f'.{domain}'))
        if filters.get('user'):
            stories = stories.filter(user__username__iexact=filters['user'])

        candidates = list(
            stories.distinct().select_related('user').prefetch_related('tags')
            .order_by('-created_at')[:CANDIDATE_LIMIT]
        )
        return self._order(
            candidates, order,
            lambda story: self._relevance(parsed, story.title, f'{story.description} {story.url or ""}'),
        )

    def search_comments(self, parsed: dict, order: str) -> List[Comment]:
        comments = Comment.objects.filter(is_deleted=False, story__is_deleted=False)
        comments = self._apply_text(comments, ('comment',), parsed)

        filters = parsed['filters']
        if filters.get('tag'):
            comments = comments.filter(story__taggings__tag__tag=filters['tag'].lower())
        if filters.get('domain'):
            comments = comments.filter(story__domain=filters['domain'].lower())
        if filters.get('user'):
            comments = comments.filter(user__username__iexact=filters['user'])

        candidates = list(
            comments.distinct().select_related('user', 'story').order_by('-created_at')[:CANDIDATE_LIMIT]
        )
        return self._order(candidates, order, lambda comment: self._relevance(parsed, '', comment.comment))

    def search_users(self, parsed: dict) -> List[User]:
        words = self._match_terms(parsed) + parsed['wildcards']
        if parsed['filters'].get('user'):
            words.append(parsed['filters']['user'])
        if not words:
            return []

        users = User.objects.all()
        for word in words:
            users = users.filter(Q(username__icontains=word) | Q(about__icontains=word))
        return list(users.order_by('-karma', 'username')[:CANDIDATE_LIMIT])

    def search(self, q: str, type: str = 'all', order: str = 'relevance', limit: int = 25,
               offset: int = 0, identifier: Optional[str] = None) -> dict:
        """
        Run a search; identifier is the rate limit key of the caller.
        """
        if identifier is not None:
            rate_limit_service.check('search', identifier)

        parsed = self.parse_query(q)
        search_type = parsed['filters'].get('type', type or 'all').lower()
        if search_type not in SEARCH_TYPES:
            raise ValidationFailed(f'Unknown search type: {search_type}', details={'types': list(SEARCH_TYPES)})
        if order not in SEARCH_ORDERS:
            raise ValidationFailed(f'Unknown order: {order}', details={'orders': list(SEARCH_ORDERS)})

        result = {'stories': [], 'comments': [], 'users': [], 'total': 0, 'query': parsed}
        if not self._has_criteria(parsed):
            return result

        stories = self.search_stories(parsed, order) if search_type in ('all', 'stories') else []
        comments = self.search_comments(parsed, order) if search_type in ('all', 'comments') else []
        users = self.search_users(parsed) if search_type in ('all', 'users') else []

        result['total'] = len(stories) + len(comments) + len(users)
        result['stories'] = stories[offset:offset + limit]
        result['comments'] = comments[offset:offset + limit]
        result['users'] = users[offset:offset + limit]

        logger.debug(f'Search "{q}" ({search_type}/{order}) returned {result["total"]} results')
        return result

    def autocomplete(self, prefix: str, limit: int = 10) -> List[dict]:
        """
        Tags, then usernames, then story titles, at most `limit` in total.
        """
        prefix = (prefix or '').strip()
        if len(prefix) < 2:
            return []

        suggestions = [
            {'type': 'tag', 'value': tag}
            for tag in Tag.objects.filter(tag__istartswith=prefix, inactive=False)
            .order_by('tag').values_list('tag', flat=True)[:limit]
        ]
        if len(suggestions) < limit:
            suggestions += [
                {'type': 'user', 'value': username}
                for username in User.objects.filter(username__istartswith=prefix)
                .order_by('-karma').values_list('username', flat=True)[:limit - len(suggestions)]
            ]
        if len(suggestions) < limit:
            suggestions += [
                {'type': 'story', 'value': title, 'short_id': short_id}
                for title, short_id in Story.objects.filter(title__icontains=prefix, is_deleted=False)
                .order_by('-score').values_list('title', 'short_id')[:limit - len(suggestions)]
            ]
        return suggestions[:limit]


# Create singleton instance
search_service = SearchService()
