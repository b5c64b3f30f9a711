"""
Server-rendered, read-only pages.

The viewer comes from request.user_jwt (Bearer header or access_token cookie);
everything renders for anonymous visitors too.
"""

from django.http import Http404
from django.shortcuts import redirect, render

from apps.authentication.models import User
from apps.core.exceptions import NotFound, ValidationFailed
from apps.core.middleware.ratelimit import client_ip

PER_PAGE = 25

STORY_LIST_HEADINGS = {
    'hot': 'Hottest',
    'newest': 'Newest',
    'recent': 'Recent',
    'top': 'Top',
}


def _viewer(request):
    jwt_user = getattr(request, 'user_jwt', None)
    if not jwt_user or not jwt_user.get('user_id'):
        return None
    return User.objects.filter(id=jwt_user['user_id']).first()


def _page(request) -> int:
    try:
        return max(1, int(request.GET.get('page', 1)))
    except (TypeError, ValueError):
        return 1


def _paged(items, page):
    """Split a PER_PAGE + 1 fetch into the page and a has-next flag"""
    return items[:PER_PAGE], len(items) > PER_PAGE


def _mark_votes(nodes, votes):
    for node in nodes:
        node['vote'] = votes.get(node['comment'].id, 0)
        _mark_votes(node['children'], votes)


def _story_list(request, sort, tag=None, heading=None, template='web/stories.html', extra=None):
    from apps.stories.services import story_service

    page = _page(request)
    viewer = _viewer(request)
    try:
        stories = story_service.get_stories(
            sort=sort, limit=PER_PAGE + 1, offset=(page - 1) * PER_PAGE,
            tag=tag, viewer=viewer, period=request.GET.get('period', 'all'),
        )
    except ValidationFailed as e:
        raise Http404(e.message)

    stories, has_next = _paged(stories, page)
    state = story_service.story_state_for(stories, viewer)
    for item in stories:
        item.viewer_state = state.get(item.id, {})

    context = {
        'stories': stories,
        'heading': heading or STORY_LIST_HEADINGS[sort],
        'sort': sort,
        'page': page,
        'has_next': has_next,
        'offset': (page - 1) * PER_PAGE,
    }
    context.update(extra or {})
    return render(request, template, context)


def index(request):
    return _story_list(request, 'hot')


def newest(request):
    return _story_list(request, 'newest')


def recent(request):
    return _story_list(request, 'recent')


def top(request):
    return _story_list(request, 'top')


def story(request, short_id, slug=None):
    from apps.comments.services import comment_service
    from apps.stories.services import story_service
    from apps.votes.services import vote_service

    try:
        found = story_service.get_story_by_short_id(short_id)
    except NotFound:
        raise Http404('Story not found')

    if found.short_id != short_id or (slug is not None and slug != found.slug):
        return redirect(found.get_absolute_url(), permanent=True)

    viewer = _viewer(request)
    found.viewer_state = story_service.story_state_for([found], viewer).get(found.id, {})
    tree = comment_service.get_comment_tree(found)
    _mark_votes(tree, vote_service.comment_votes_for(viewer, found))

    return render(request, 'web/story.html', {'story': found, 'comments': tree})


def comments(request):
    from apps.comments.services import comment_service

    page = _page(request)
    items, has_next = _paged(comment_service.recent_comments(PER_PAGE + 1, (page - 1) * PER_PAGE), page)
    return render(request, 'web/comments.html', {
        'comments': items,
        'page': page,
        'has_next': has_next,
    })


def tag(request, tag):
    from apps.stories.models import Tag

    found = Tag.objects.filter(tag=tag.lower(), inactive=False).first()
    if found is None:
        raise Http404('Tag not found')
    return _story_list(request, 'hot', tag=found.tag, heading=f'Stories tagged {found.tag}',
                       extra={'tag': found})


def tags(request):
    from apps.stories.services import tag_service

    return render(request, 'web/tags.html', {'tags': tag_service.all_tags_with_counts()})


def user(request, username):
    from apps.comments.services import comment_service
    from apps.stories.services import story_service
    from apps.users.services import user_service

    try:
        profile_user = user_service.get_by_username(username)
    except NotFound:
        raise Http404('User not found')

    return render(request, 'web/user.html', {
        'profile_user': profile_user,
        'profile': user_service.profile(profile_user),
        'stories': story_service.get_stories(sort='newest', limit=10, user=profile_user),
        'comments': comment_service.comments_by_user(profile_user, limit=10),
    })


def users(request):
    from apps.users.services import user_service

    order = request.GET.get('order', 'karma')
    if order not in ('karma', 'newest'):
        order = 'karma'
    page = _page(request)
    items, has_next = _paged(user_service.list_users(order, PER_PAGE + 1, (page - 1) * PER_PAGE), page)
    return render(request, 'web/users.html', {
        'users': items,
        'order': order,
        'page': page,
        'has_next': has_next,
    })


def moderation_log(request):
    from apps.moderation.services import moderation_service

    page = _page(request)
    entries, has_next = _paged(moderation_service.moderation_log(PER_PAGE + 1, (page - 1) * PER_PAGE), page)
    return render(request, 'web/moderation_log.html', {
        'entries': entries,
        'page': page,
        'has_next': has_next,
    })


def search(request):
    from apps.search.services import search_service

    query = request.GET.get('q', '').strip()
    search_type = request.GET.get('type', 'all')
    order = request.GET.get('order', 'relevance')
    page = _page(request)
    viewer = _viewer(request)

    context = {'query': query, 'type': search_type, 'order': order, 'page': page, 'result': None, 'error': None}
    if query:
        identifier = f'user:{viewer.id}' if viewer else f'ip:{client_ip(request)}'
        try:
            context['result'] = search_service.search(
                query, type=search_type, order=order, limit=PER_PAGE,
                offset=(page - 1) * PER_PAGE, identifier=identifier,
            )
        except ValidationFailed as e:
            context['error'] = e.message
    return render(request, 'web/search.html', context)


def page_not_found(request, exception=None):
    return render(request, 'web/404.html', {'message': str(exception) if exception else ''}, status=404)
