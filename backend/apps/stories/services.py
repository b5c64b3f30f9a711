"""
Story and tag services.

Submission, listing, editing and per-user story state. Anonymous front pages
are cached as id lists in the stories namespace.
"""

import logging
import math
import re
from datetime import timedelta
from typing import Iterable, List, Optional

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.authentication.models import User
from apps.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from apps.core.services import cache_service, rate_limit_service
from apps.core.utils.text import (
    extract_domain,
    generate_short_id,
    is_valid_http_url,
    normalize_url,
    render_markdown,
    slugify_title,
)
from .models import HiddenStory, SavedStory, Story, Tag, Tagging

logger = logging.getLogger(__name__)

TAG_NAME_PATTERN = re.compile(r'[^a-z0-9-]')

# Keyword table for tag suggestions: tag name -> words that imply it
LANGUAGE_KEYWORDS = {
    'javascript': ['js', 'javascript', 'node', 'npm', 'react', 'vue', 'angular'],
    'python': ['python', 'django', 'flask', 'pip', 'pandas', 'numpy'],
    'php': ['php', 'laravel', 'symfony', 'composer'],
    'java': ['java', 'spring', 'maven', 'gradle', 'jvm'],
    'rust': ['rust', 'cargo', 'rustc'],
    'go': ['golang', 'goroutine'],
    'c': ['gcc', 'clang'],
    'cpp': ['c++', 'cpp', 'stl'],
    'ruby': ['ruby', 'rails', 'gem'],
}

TOPIC_KEYWORDS = {
    'ai': ['ai', 'machine learning', 'neural', 'llm', 'gpt', 'deep learning'],
    'security': ['security', 'vulnerability', 'exploit', 'cve', 'encryption', 'malware'],
    'web': ['web', 'html', 'css', 'browser', 'http'],
    'mobile': ['mobile', 'android', 'ios', 'iphone'],
    'database': ['database', 'sql', 'postgres', 'mysql', 'sqlite', 'redis'],
    'devops': ['devops', 'docker', 'kubernetes', 'ci', 'deployment', 'terraform'],
}


class TagService:
    """
    Tag parsing, assignment and suggestions
    """

    MAX_TAGS_PER_STORY = 5
    MAX_TAG_LENGTH = 25
    MIN_KARMA_TO_CREATE = 10

    def normalize_tag_name(self, name: str) -> str:
        return TAG_NAME_PATTERN.sub('', (name or '').strip().lower())[:self.MAX_TAG_LENGTH]

    def parse_tags(self, value) -> List[str]:
        """
        'Python, web,python' -> ['python', 'web']

        Accepts a comma separated string or a list of names.
        """
        if not value:
            return []
        parts = value.split(',') if isinstance(value, str) else list(value)

        tags = []
        for part in parts:
            name = self.normalize_tag_name(str(part))
            if name and name not in tags:
                tags.append(name)
            if len(tags) >= self.MAX_TAGS_PER_STORY:
                break
        return tags

    def can_create_tag(self, user: Optional[User]) -> bool:
        if user is None:
            return False
        return user.is_staff_member or user.karma >= self.MIN_KARMA_TO_CREATE

    def create_tag(self, user: User, name: str, description: str = '',
                   privileged: bool = False, category: str = '') -> Tag:
        if not self.can_create_tag(user):
            raise Forbidden('Not enough karma to create tags', details={'min_karma': self.MIN_KARMA_TO_CREATE})

        tag_name = self.normalize_tag_name(name)
        if not tag_name:
            raise ValidationFailed('Tag name is required')
        if Tag.objects.filter(tag=tag_name).exists():
            raise Conflict('Tag already exists', details={'tag': tag_name})

        tag = Tag.objects.create(
            tag=tag_name,
            description=description or '',
            privileged=bool(privileged) and user.is_staff_member,
            category=category or '',
        )
        cache_service.invalidate_namespace('tags')
        logger.info(f'Tag {tag_name} created by {user.username}')
        return tag

    def tag_story(self, story: Story, names: Iterable[str], user: Optional[User]) -> List[Tag]:
        """
        Replace the story's tags.

        Unknown names are created for users allowed to create tags and dropped
        otherwise. Privileged tags are dropped for non-moderators.
        """
        names = self.parse_tags(list(names or []))
        is_staff = bool(user and user.is_staff_member)
        may_create = self.can_create_tag(user)

        existing = {tag.tag: tag for tag in Tag.objects.filter(tag__in=names)}
        tags = []
        for name in names:
            tag = existing.get(name)
            if tag is None:
                if not may_create:
                    continue
                tag = Tag.objects.create(tag=name)
            if tag.inactive:
                continue
            if tag.privileged and not is_staff:
                continue
            tags.append(tag)

        Tagging.objects.filter(story=story).delete()
        Tagging.objects.bulk_create([Tagging(story=story, tag=tag) for tag in tags])
        cache_service.invalidate_namespace('tags')
        return tags

    def all_tags_with_counts(self) -> list:
        def load():
            rows = (
                Tag.objects.filter(inactive=False)
                .annotate(story_count=Count('taggings', filter=Q(taggings__story__is_deleted=False)))
                .order_by('tag')
            )
            return [
                {
                    'tag': tag.tag,
                    'description': tag.description,
                    'category': tag.category,
                    'privileged': tag.privileged,
                    'is_media': tag.is_media,
                    'story_count': tag.story_count,
                }
                for tag in rows
            ]

        return cache_service.remember('all_with_counts', 3600, load, namespace='tags')

    def popular_tags(self, limit: int = 20) -> list:
        tags = [tag for tag in self.all_tags_with_counts() if tag['story_count'] > 0]
        tags.sort(key=lambda tag: (-tag['story_count'], tag['tag']))
        return tags[:limit]

    def suggest_tags(self, title: str, description: str = '') -> List[str]:
        """
        Existing tag names implied by the text, at most five.

        A tag matches when its own name or one of its keywords appears as a
        whole word.
        """
        text = f'{title or ""} {description or ""}'.lower()
        if not text.strip():
            return []

        def mentions(word):
            return re.search(r'(?<![\w+])' + re.escape(word) + r'(?![\w+])', text) is not None

        available = set(Tag.objects.filter(inactive=False, privileged=False).values_list('tag', flat=True))
        suggestions = []

        for table in (LANGUAGE_KEYWORDS, TOPIC_KEYWORDS):
            for tag, keywords in table.items():
                if tag in available and tag not in suggestions and any(mentions(k) for k in keywords):
                    suggestions.append(tag)

        for tag in sorted(available):
            if tag not in suggestions and len(tag) > 2 and mentions(tag):
                suggestions.append(tag)

        return suggestions[:self.MAX_TAGS_PER_STORY]


class StoryService:
    """
    Story submission and listing
    """

    MAX_TITLE_LENGTH = 150
    MAX_URL_LENGTH = 500
    MAX_DESCRIPTION_LENGTH = 65535
    DUPLICATE_WINDOW_DAYS = 30
    EDIT_WINDOW_HOURS = 6
    RECENT_WINDOW_HOURS = 48
    HOTNESS_DIVISOR = 22800
    SORTS = ('hot', 'newest', 'recent', 'top')
    TOP_PERIODS = {
        'day': timedelta(days=1),
        'week': timedelta(weeks=1),
        'month': timedelta(days=30),
        'year': timedelta(days=365),
        'all': None,
    }

    def __init__(self, tags: TagService):
        self.tags = tags

    # Creation and editing

    def _generate_unique_short_id(self) -> str:
        while True:
            short_id = generate_short_id(6)
            if not Story.objects.filter(short_id=short_id).exists():
                return short_id

    def _validate(self, title: str, url: Optional[str], description: str) -> tuple:
        title = (title or '').strip()
        url = (url or '').strip() or None
        description = (description or '').strip()

        if not title:
            raise ValidationFailed('Title is required', details={'title': ['This field is required.']})
        if len(title) > self.MAX_TITLE_LENGTH:
            raise ValidationFailed(
                f'Title must be at most {self.MAX_TITLE_LENGTH} characters',
                details={'title': ['Too long.']},
            )
        if not url and not description:
            raise ValidationFailed('Either a URL or a description is required')
        if url:
            if len(url) > self.MAX_URL_LENGTH:
                raise ValidationFailed(
                    f'URL must be at most {self.MAX_URL_LENGTH} characters',
                    details={'url': ['Too long.']},
                )
            if not is_valid_http_url(url):
                raise ValidationFailed('URL must start with http:// or https://', details={'url': ['Invalid URL.']})
        if len(description) > self.MAX_DESCRIPTION_LENGTH:
            raise ValidationFailed('Description is too long', details={'description': ['Too long.']})
        return title, url, description

    def find_recent_duplicate(self, url: str, exclude_id=None) -> Optional[Story]:
        normalized = normalize_url(url)
        if not normalized:
            return None
        since = timezone.now() - timedelta(days=self.DUPLICATE_WINDOW_DAYS)
        stories = Story.objects.filter(normalized_url=normalized, created_at__gte=since, is_deleted=False)
        if exclude_id is not None:
            stories = stories.exclude(id=exclude_id)
        return stories.order_by('-created_at').first()

    def create_story(self, user: User, title: str, url: Optional[str] = None, description: str = '',
                     tags=None, user_is_author: bool = False) -> Story:
        """
        Submit a story.

        Raises:
            ValidationFailed: If the fields are invalid
            RateLimited: If the user submitted too many stories today
            Conflict: If the same URL was submitted in the last 30 days
        """
        from apps.votes.services import vote_service
        from apps.notifications.services import notification_service

        title, url, description = self._validate(title, url, description)
        rate_limit_service.check('story_submission', f'user:{user.id}')

        if url:
            duplicate = self.find_recent_duplicate(url)
            if duplicate is not None:
                raise Conflict(
                    'This URL has already been submitted recently',
                    code='DUPLICATE_STORY',
                    details={'short_id': duplicate.short_id, 'url': duplicate.get_absolute_url()},
                )

        with transaction.atomic():
            story = Story.objects.create(
                user=user,
                short_id=self._generate_unique_short_id(),
                title=title,
                url=url,
                normalized_url=normalize_url(url) if url else '',
                domain=extract_domain(url) if url else '',
                description=description,
                markdown_description=render_markdown(description),
                user_is_author=bool(user_is_author),
            )
            self.tags.tag_story(story, self.tags.parse_tags(tags), user)
            vote_service.record_author_vote(user, story=story)
            story.refresh_from_db()
            self.update_hotness(story)

        cache_service.invalidate_story(story.id)
        if description:
            notification_service.notify_mentions(description, user, story.get_absolute_url(), context=story.title)

        logger.info(f'Story {story.short_id} submitted by {user.username}')
        return story

    def can_edit(self, story: Story, user: Optional[User]) -> bool:
        if user is None:
            return False
        if user.is_staff_member:
            return True
        if story.user_id != user.id or story.is_moderated or story.is_deleted:
            return False
        return timezone.now() - story.created_at < timedelta(hours=self.EDIT_WINDOW_HOURS)

    def update_story(self, story: Story, user: User, data: dict) -> Story:
        if not self.can_edit(story, user):
            raise Forbidden('You cannot edit this story')

        title, url, description = self._validate(
            data.get('title', story.title),
            data.get('url', story.url),
            data.get('description', story.description),
        )
        if url and normalize_url(url) != story.normalized_url:
            duplicate = self.find_recent_duplicate(url, exclude_id=story.id)
            if duplicate is not None:
                raise Conflict(
                    'This URL has already been submitted recently',
                    code='DUPLICATE_STORY',
                    details={'short_id': duplicate.short_id},
                )

        story.title = title
        story.url = url
        story.normalized_url = normalize_url(url) if url else ''
        story.domain = extract_domain(url) if url else ''
        story.description = description
        story.markdown_description = render_markdown(description)
        if 'user_is_author' in data:
            story.user_is_author = bool(data['user_is_author'])
        story.save()

        if 'tags' in data:
            self.tags.tag_story(story, self.tags.parse_tags(data['tags']), user)
            self.update_hotness(story)

        cache_service.invalidate_story(story.id)
        return story

    def delete_story(self, story: Story, user: User) -> None:
        if story.user_id != user.id and not user.is_staff_member:
            raise Forbidden('You cannot delete this story')

        story.is_deleted = True
        story.save(update_fields=['is_deleted', 'updated_at'])
        cache_service.invalidate_story(story.id)

        if story.user_id != user.id:
            from apps.moderation.services import moderation_service
            moderation_service.log(user, 'delete', story=story, target_user=story.user)
        logger.info(f'Story {story.short_id} deleted by {user.username}')

    # Lookup and listing

    def get_story_by_short_id(self, short_id: str, include_deleted: bool = False) -> Story:
        story = Story.objects.select_related('user', 'merged_story').filter(short_id=short_id).first()
        if story is None:
            raise NotFound('Story not found')
        if story.merged_story_id:
            story = Story.objects.select_related('user').get(id=story.merged_story_id)
        if story.is_deleted and not include_deleted:
            raise NotFound('Story not found')
        return story

    def visible_stories(self):
        return Story.objects.filter(is_deleted=False, is_expired=False, merged_story__isnull=True)

    def get_stories(self, sort: str = 'hot', limit: int = 25, offset: int = 0, tag: Optional[str] = None,
                    domain: Optional[str] = None, user: Optional[User] = None,
                    viewer: Optional[User] = None, period: str = 'all') -> List[Story]:
        """
        One page of stories.

        tag, domain and user narrow the listing; viewer removes hidden stories
        and applies the viewer's tag preferences.
        """
        from apps.users.services import user_service

        if sort not in self.SORTS:
            raise ValidationFailed(f'Unknown sort: {sort}', details={'sort': list(self.SORTS)})
        limit = max(1, min(int(limit), 100))
        offset = max(0, int(offset))

        stories = self.visible_stories()
        if tag:
            stories = stories.filter(taggings__tag__tag=self.tags.normalize_tag_name(tag))
        if domain:
            stories = stories.filter(domain=domain.lower())
        if user is not None:
            stories = stories.filter(user=user)

        now = timezone.now()
        if sort == 'hot':
            stories = stories.order_by('hotness', '-created_at')
        elif sort == 'newest':
            stories = stories.order_by('-created_at')
        elif sort == 'recent':
            stories = stories.filter(
                updated_at__gte=now - timedelta(hours=self.RECENT_WINDOW_HOURS)
            ).order_by('-updated_at')
        else:
            window = self.TOP_PERIODS.get(period or 'all', None)
            if window is not None:
                stories = stories.filter(created_at__gte=now - window)
            stories = stories.order_by('-score', '-created_at')

        if viewer is not None:
            stories = stories.exclude(hides__user=viewer)
            filtered = [self.tags.normalize_tag_name(name) for name in (viewer.filtered_tags or [])]
            if filtered:
                stories = stories.exclude(taggings__tag__tag__in=filtered)

        if viewer is None and not (tag or domain or user):
            cache_key = f'listing:{sort}:{period}:{limit}:{offset}'
            ids = cache_service.remember(
                cache_key, 300,
                lambda: list(stories.distinct().values_list('id', flat=True)[offset:offset + limit]),
                namespace='stories',
            )
            by_id = Story.objects.select_related('user').prefetch_related('tags').in_bulk(ids)
            return [by_id[story_id] for story_id in ids if story_id in by_id]

        page = list(
            stories.distinct().select_related('user').prefetch_related('tags')[offset:offset + limit]
        )
        if viewer is not None:
            page = user_service.apply_tag_preferences(page, viewer)
        return page

    def count_stories(self, tag: Optional[str] = None) -> int:
        stories = self.visible_stories()
        if tag:
            stories = stories.filter(taggings__tag__tag=self.tags.normalize_tag_name(tag))
        return stories.count()

    def get_url_for_story(self, story: Story) -> str:
        slug = slugify_title(story.title)
        return f'/s/{story.short_id}/{slug}' if slug else f'/s/{story.short_id}'

    # Scoring

    def calculate_hotness(self, story: Story) -> float:
        """
        Lower is hotter: hot listings sort ascending.

        Score contributes logarithmically, age linearly with one order of
        magnitude of score worth 22800 seconds.
        """
        score = story.score or 0
        order = math.log10(max(abs(score), 1))
        sign = 1 if score > 0 else -1 if score < 0 else 0
        base = sum(tag.hotness_mod for tag in story.tags.all())
        created = story.created_at or timezone.now()
        seconds = created.timestamp()
        return round(-(base + order * sign + seconds / self.HOTNESS_DIVISOR), 7)

    def update_hotness(self, story: Story) -> float:
        story.hotness = self.calculate_hotness(story)
        Story.objects.filter(id=story.id).update(hotness=story.hotness)
        return story.hotness

    def increment_comment_count(self, story: Story, delta: int = 1) -> None:
        story.refresh_from_db(fields=['comments_count'])
        story.comments_count = max(0, story.comments_count + delta)
        Story.objects.filter(id=story.id).update(comments_count=story.comments_count)
        self.update_hotness(story)

    # Per-user state

    def save_story(self, story: Story, user: User) -> bool:
        _, created = SavedStory.objects.get_or_create(user=user, story=story)
        return created

    def unsave_story(self, story: Story, user: User) -> bool:
        deleted, _ = SavedStory.objects.filter(user=user, story=story).delete()
        return deleted > 0

    def hide_story(self, story: Story, user: User) -> bool:
        _, created = HiddenStory.objects.get_or_create(user=user, story=story)
        return created

    def unhide_story(self, story: Story, user: User) -> bool:
        deleted, _ = HiddenStory.objects.filter(user=user, story=story).delete()
        return deleted > 0

    def saved_stories(self, user: User) -> List[Story]:
        return [
            saved.story for saved in
            SavedStory.objects.filter(user=user, story__is_deleted=False)
            .select_related('story', 'story__user').order_by('-created_at')
        ]

    def story_state_for(self, stories: Iterable[Story], user: Optional[User]) -> dict:
        """
        Per-story viewer state: {'story_id': {'vote', 'saved', 'hidden'}}
        """
        from apps.votes.models import Vote

        ids = [story.id for story in stories]
        if user is None or not ids:
            return {}

        votes = dict(
            Vote.objects.filter(user=user, story_id__in=ids, comment__isnull=True)
            .values_list('story_id', 'vote')
        )
        saved = set(SavedStory.objects.filter(user=user, story_id__in=ids).values_list('story_id', flat=True))
        hidden = set(HiddenStory.objects.filter(user=user, story_id__in=ids).values_list('story_id', flat=True))
        return {
            story_id: {
                'vote': votes.get(story_id, 0),
                'saved': story_id in saved,
                'hidden': story_id in hidden,
            }
            for story_id in ids
        }


# Create singleton instances
tag_service = TagService()
story_service = StoryService(tag_service)
