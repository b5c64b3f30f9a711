"""
Tests for story and comment voting, flags and karma.
"""

import pytest
from hypothesis import given, strategies as st, settings, HealthCheck

from apps.comments.services import comment_service
from apps.core.exceptions import Conflict, Forbidden, ValidationFailed
from apps.votes.models import Vote
from apps.votes.services import vote_service


def karma_of(user):
    user.refresh_from_db(fields=['karma'])
    return user.karma


@pytest.mark.django_db
class TestStoryVotes:

    def test_upvote_via_api(self, client_for, user, other_user, make_story):
        story = make_story(user)

        response = client_for(other_user).post(
            f'/api/v1/stories/{story.short_id}/vote', {'direction': 'up'}, format='json'
        )

        assert response.status_code == 200
        assert response.json() == {'action': 'added', 'score': 2}
        assert karma_of(user) == 51

    def test_repeat_removes_vote(self, user, other_user, make_story):
        story = make_story(user)
        vote_service.vote_on_story(other_user, story, 1)

        result = vote_service.vote_on_story(other_user, story, 1)

        assert result == {'action': 'removed', 'score': 1}
        assert karma_of(user) == 50
        assert not Vote.objects.filter(user=other_user).exists()

    def test_switch_direction(self, user, other_user, make_story):
        story = make_story(user)
        vote_service.vote_on_story(other_user, story, 1)

        result = vote_service.vote_on_story(other_user, story, -1, 'o')

        assert result == {'action': 'changed', 'score': 0}
        assert karma_of(user) == 49
        vote = Vote.objects.get(user=other_user)
        assert vote.vote == -1
        assert vote.reason == 'O'

    def test_cannot_downvote_own_story(self, auth_client, user, make_story):
        story = make_story(user)

        response = auth_client.post(f'/api/v1/stories/{story.short_id}/vote', {'direction': 'down'}, format='json')

        assert response.status_code == 403
        assert response.json()['error']['code'] == 'FORBIDDEN'

    def test_own_upvote_toggle_skips_karma(self, user, make_story):
        story = make_story(user)

        assert vote_service.vote_on_story(user, story, 1)['action'] == 'removed'
        assert karma_of(user) == 50

    def test_invalid_values(self, user, other_user, make_story):
        story = make_story(user)
        with pytest.raises(ValidationFailed):
            vote_service.vote_on_story(other_user, story, 2)
        with pytest.raises(ValidationFailed):
            vote_service.vote_on_story(other_user, story, 'up')
        with pytest.raises(ValidationFailed):
            vote_service.vote_on_story(other_user, story, -1, 'X')

    def test_deleted_story(self, user, other_user, make_story):
        story = make_story(user)
        story.is_deleted = True
        with pytest.raises(ValidationFailed):
            vote_service.vote_on_story(other_user, story, 1)

    def test_upvote_clears_reason(self, user, other_user, make_story):
        story = make_story(user)
        vote_service.vote_on_story(other_user, story, 1, 'S')
        assert Vote.objects.get(user=other_user).reason == ''

    def test_anonymous_cannot_vote(self, api_client, user, make_story):
        story = make_story(user)
        response = api_client.post(f'/api/v1/stories/{story.short_id}/vote', {'direction': 'up'}, format='json')
        assert response.status_code == 401


@pytest.mark.django_db
class TestCommentVotes:

    @pytest.fixture
    def comment(self, user, make_story):
        story = make_story(user)
        return comment_service.create_comment(user, story, 'A comment worth voting on')

    def test_vote_updates_confidence(self, client_for, other_user, comment):
        before = comment.confidence

        response = client_for(other_user).post(
            f'/api/v1/comments/{comment.short_id}/vote', {'direction': 'up'}, format='json'
        )

        assert response.json() == {'action': 'added', 'score': 2}
        comment.refresh_from_db()
        assert comment.upvotes == 2
        assert comment.confidence > before

    def test_downvote_with_reason_counts_as_flag(self, other_user, comment):
        vote_service.vote_on_comment(other_user, comment, -1, 'T')

        comment.refresh_from_db()
        assert comment.score == 0
        assert comment.flags == 1

    def test_cannot_downvote_own_comment(self, user, comment):
        with pytest.raises(Forbidden):
            vote_service.vote_on_comment(user, comment, -1)

    def test_karma_follows_comment_votes(self, user, other_user, comment):
        vote_service.vote_on_comment(other_user, comment, 1)
        assert karma_of(user) == 51
        vote_service.vote_on_comment(other_user, comment, -1)
        assert karma_of(user) == 49

    def test_viewer_votes(self, user, other_user, comment):
        vote_service.vote_on_comment(other_user, comment, 1)

        assert vote_service.comment_votes_for(other_user, comment.story) == {comment.id: 1}
        assert vote_service.comment_votes_for(None, comment.story) == {}
        assert vote_service.user_vote_for(other_user, comment=comment) == 1


@pytest.mark.django_db
class TestFlags:

    @pytest.fixture
    def comment(self, user, make_story):
        story = make_story(user)
        return comment_service.create_comment(user, story, 'Buy cheap watches')

    def test_flag_via_api(self, client_for, other_user, comment):
        response = client_for(other_user).post(f'/api/v1/comments/{comment.short_id}/flag', {'reason': 'S'}, format='json')

        assert response.status_code == 200
        assert response.json() == {'flagged': True, 'flags': 1}

    def test_flag_once_per_user(self, other_user, comment):
        comment_service.flag_comment(comment, other_user, 's')
        with pytest.raises(Conflict):
            comment_service.flag_comment(comment, other_user, 'T')

    def test_flag_requires_known_reason(self, other_user, comment):
        with pytest.raises(ValidationFailed):
            comment_service.flag_comment(comment, other_user, '')
        with pytest.raises(ValidationFailed):
            comment_service.flag_comment(comment, other_user, 'Z')

    def test_cannot_flag_own_comment(self, user, comment):
        with pytest.raises(Forbidden):
            comment_service.flag_comment(comment, user, 'S')

    def test_cannot_flag_deleted_comment(self, user, other_user, comment):
        comment_service.delete_comment(comment, user)
        with pytest.raises(ValidationFailed):
            comment_service.flag_comment(comment, other_user, 'S')

    def test_flag_survives_removed_upvote(self, other_user, comment):
        comment_service.flag_comment(comment, other_user, 'S')
        vote_service.vote_on_comment(other_user, comment, 1)
        vote_service.vote_on_comment(other_user, comment, 1)

        comment.refresh_from_db()
        assert comment.flags == 1
        assert comment.upvotes == 1
        vote = Vote.objects.get(user=other_user, comment=comment)
        assert (vote.vote, vote.reason) == (0, 'S')
        assert vote_service.comment_votes_for(other_user, comment.story) == {}


@pytest.mark.django_db
class TestVoteCounts:

    @given(values=st.lists(st.sampled_from([1, -1]), min_size=1, max_size=8))
    @settings(max_examples=15, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_counts_match_vote_rows(self, user, other_user, make_story, values):
        story = make_story(user, url=None, description='counting')

        for value in values:
            vote_service.vote_on_story(other_user, story, value)

        rows = Vote.objects.filter(story=story, comment__isnull=True)
        story.refresh_from_db()
        assert story.upvotes == rows.filter(vote=1).count()
        assert story.downvotes == rows.filter(vote=-1).count()
        assert story.score == story.upvotes - story.downvotes
        assert rows.filter(user=other_user).count() <= 1
