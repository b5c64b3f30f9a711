"""
Tests for private messages: sending, threads, read state and search.
"""

import pytest

from apps.core.exceptions import Forbidden, NotFound, ValidationFailed
from apps.messaging.models import Message
from apps.messaging.services import message_service
from apps.users.models import UserFollow


@pytest.mark.django_db
class TestSending:

    def test_send_via_api(self, auth_client, user, other_user):
        response = auth_client.post('/api/v1/messages', {
            'recipient': 'Bob', 'subject': 'Hello', 'body': 'Are you going to the meetup?',
        }, format='json')

        assert response.status_code == 201
        message = response.json()['message']
        assert message['recipient'] == 'bob'
        assert message['body'] == 'Are you going to the meetup?'
        assert message['has_been_read'] is False

        notification = other_user.notifications.get()
        assert notification.type == 'message'
        assert notification.priority == 'high'

    def test_body_is_encrypted_at_rest(self, user, other_user):
        message = message_service.send_message(user, 'bob', 'Secret', 'the password is swordfish')

        stored = Message.objects.values_list('encrypted_body', flat=True).get(id=message.id)
        assert 'swordfish' not in stored
        assert Message.objects.get(id=message.id).body == 'the password is swordfish'

    def test_unknown_recipient(self, user):
        with pytest.raises(NotFound):
            message_service.send_message(user, 'nobody', 'Hi', 'Body')

    def test_cannot_message_self(self, user):
        with pytest.raises(ValidationFailed):
            message_service.send_message(user, 'alice', 'Hi', 'Body')

    @pytest.mark.parametrize('subject,body', [('', 'Body'), ('x' * 101, 'Body'), ('Hi', '   ')])
    def test_field_validation(self, user, other_user, subject, body):
        with pytest.raises(ValidationFailed):
            message_service.send_message(user, 'bob', subject, body)

    def test_recipient_accepts_nobody(self, user, other_user, moderator):
        other_user.allow_messages_from = 'nobody'
        other_user.save()

        with pytest.raises(Forbidden) as exc_info:
            message_service.send_message(user, 'bob', 'Hi', 'Body')
        assert exc_info.value.code == 'MESSAGES_DISABLED'
        assert message_service.can_message(moderator, other_user)

    def test_recipient_accepts_followed_users(self, user, other_user):
        other_user.allow_messages_from = 'followed_users'
        other_user.save()
        assert not message_service.can_message(user, other_user)

        UserFollow.objects.create(follower=other_user, followed=user)
        assert message_service.can_message(user, other_user)


@pytest.mark.django_db
class TestThreads:

    @pytest.fixture
    def message(self, user, other_user):
        return message_service.send_message(user, 'bob', 'Lunch', 'Tacos on Friday?')

    def test_reading_marks_read(self, client_for, other_user, message):
        client = client_for(other_user)
        assert client.get('/api/v1/messages/unread-count').json() == {'count': 1}

        body = client.get(f'/api/v1/messages/{message.short_id}').json()

        assert body['message']['subject'] == 'Lunch'
        assert body['replies'] == []
        assert client.get('/api/v1/messages/unread-count').json() == {'count': 0}

    def test_author_reading_does_not_mark_read(self, auth_client, message):
        auth_client.get(f'/api/v1/messages/{message.short_id}')
        message.refresh_from_db()
        assert message.has_been_read is False

    def test_outsiders_get_not_found(self, make_user, client_for, message):
        stranger = make_user('stranger')
        response = client_for(stranger).get(f'/api/v1/messages/{message.short_id}')
        assert response.status_code == 404

    def test_reply_flow(self, client_for, user, other_user, message):
        response = client_for(other_user).post(
            f'/api/v1/messages/{message.short_id}/replies', {'body': 'Sure!'}, format='json'
        )

        assert response.status_code == 201
        assert response.json()['reply']['author'] == 'bob'
        assert message_service.unread_count(user) == 1
        assert user.notifications.filter(type='message').count() == 1

        thread = message_service.thread(user, message.short_id)
        assert [reply.body for reply in thread['replies']] == ['Sure!']
        assert message_service.unread_count(user) == 0

    def test_author_reply_marks_unread_for_recipient(self, user, other_user, message):
        message_service.thread(other_user, message.short_id)
        message_service.reply(user, message, 'Or Saturday')

        message.refresh_from_db()
        assert message.has_been_read is False

    def test_delete_hides_only_for_one_side(self, client_for, user, other_user, message):
        assert client_for(other_user).delete(f'/api/v1/messages/{message.short_id}').status_code == 204

        assert message_service.inbox(other_user) == []
        assert [m.id for m in message_service.sent(user)] == [message.id]
        with pytest.raises(NotFound):
            message_service.get_for_participant(other_user, message.short_id)

    def test_reply_restores_deleted_thread(self, user, other_user, message):
        message_service.delete_for(other_user, message)
        message_service.reply(user, message, 'Still there?')

        assert [m.id for m in message_service.inbox(other_user)] == [message.id]

    def test_non_participant_cannot_reply(self, make_user, message):
        with pytest.raises(Forbidden):
            message_service.reply(make_user('stranger'), message, 'Hi')

    def test_boxes(self, client_for, user, other_user, message):
        inbox = client_for(other_user).get('/api/v1/messages').json()
        sent = client_for(user).get('/api/v1/messages', {'box': 'sent'}).json()

        assert [m['short_id'] for m in inbox['messages']] == [message.short_id]
        assert inbox['unread_count'] == 1
        assert [m['short_id'] for m in sent['messages']] == [message.short_id]
        assert client_for(user).get('/api/v1/messages', {'box': 'trash'}).status_code == 400


@pytest.mark.django_db
class TestSearch:

    def test_search_matches_decrypted_bodies(self, client_for, user, other_user):
        tacos = message_service.send_message(user, 'bob', 'Lunch', 'Tacos on Friday?')
        message_service.send_message(user, 'bob', 'Work', 'The deploy is done')
        message_service.reply(other_user, tacos, 'Extra SALSA please')

        def found(query):
            response = client_for(other_user).get('/api/v1/messages/search', {'q': query})
            return [m['short_id'] for m in response.json()['messages']]

        assert found('tacos') == [tacos.short_id]
        assert found('salsa') == [tacos.short_id]
        assert found('WORK') != []
        assert found('nothing like this') == []

    def test_empty_query(self, user):
        with pytest.raises(ValidationFailed):
            message_service.search(user, '  ')

    def test_conversation(self, user, other_user, make_user):
        first = message_service.send_message(user, 'bob', 'One', 'First')
        second = message_service.send_message(other_user, 'alice', 'Two', 'Second')
        message_service.send_message(user, make_user('carol').username, 'Other', 'Elsewhere')

        assert [m.id for m in message_service.conversation(user, 'bob')] == [first.id, second.id]
        with pytest.raises(NotFound):
            message_service.conversation(user, 'ghost')
