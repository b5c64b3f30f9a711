"""
Tests for stored notifications, read state and websocket delivery.
"""

from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.utils import timezone

from apps.authentication.services import jwt_service
from apps.notifications.middleware import JWTAuthMiddleware
from apps.notifications.models import UserNotification
from apps.notifications.routing import websocket_urlpatterns
from apps.notifications.services import notification_service
from apps.notifications.tasks import cleanup_old_notifications


@pytest.mark.django_db
class TestNotifications:

    def test_list_and_unread_filter(self, auth_client, user):
        first = notification_service.notify(user, 'system', 'Welcome')
        notification_service.notify(user, 'system', 'Second')
        notification_service.mark_read(user, [first.id])

        everything = auth_client.get('/api/v1/notifications').json()
        unread = auth_client.get('/api/v1/notifications', {'unread': '1'}).json()

        assert [n['title'] for n in everything['notifications']] == ['Second', 'Welcome']
        assert [n['title'] for n in unread['notifications']] == ['Second']
        assert everything['unread_count'] == 1

    def test_mark_selected_read(self, auth_client, user):
        first = notification_service.notify(user, 'system', 'One')
        notification_service.notify(user, 'system', 'Two')

        response = auth_client.post('/api/v1/notifications/read', {'ids': [first.id]}, format='json')

        assert response.json() == {'updated': 1, 'unread_count': 1}
        first.refresh_from_db()
        assert first.is_read
        assert first.read_at is not None

    def test_mark_all_read(self, auth_client, user):
        notification_service.notify(user, 'system', 'One')
        notification_service.notify(user, 'system', 'Two')

        response = auth_client.post('/api/v1/notifications/read', {}, format='json')

        assert response.json() == {'updated': 2, 'unread_count': 0}
        assert auth_client.get('/api/v1/notifications/unread-count').json() == {'count': 0}

    def test_cannot_mark_someone_elses(self, user, other_user):
        theirs = notification_service.notify(other_user, 'system', 'Private')

        assert notification_service.mark_read(user, [theirs.id]) == 0
        theirs.refresh_from_db()
        assert not theirs.is_read

    def test_banned_users_get_nothing(self, user):
        user.banned_at = timezone.now()
        user.save()

        assert notification_service.notify(user, 'system', 'Hello') is None
        assert not UserNotification.objects.exists()

    def test_requires_authentication(self, api_client, db):
        assert api_client.get('/api/v1/notifications').status_code == 401

    def test_bad_limit(self, auth_client):
        assert auth_client.get('/api/v1/notifications', {'limit': 'many'}).status_code == 400


@pytest.mark.django_db
class TestMentions:

    def test_each_user_once_never_the_actor(self, user, other_user, make_user):
        make_user('carol')

        sent = notification_service.notify_mentions(
            'cc @bob @BOB @carol @alice @nobody', user, '/s/abc', 'context'
        )

        assert sorted(n.user.username for n in sent) == ['bob', 'carol']

    def test_excluded_users(self, user, other_user):
        sent = notification_service.notify_mentions('@bob', user, '/s/abc', exclude=[other_user.id])
        assert sent == []


@pytest.mark.django_db
class TestCleanup:

    def test_only_old_read_notifications_are_removed(self, user):
        old_read = notification_service.notify(user, 'system', 'Old read')
        old_unread = notification_service.notify(user, 'system', 'Old unread')
        fresh = notification_service.notify(user, 'system', 'Fresh')
        notification_service.mark_read(user, [old_read.id, fresh.id])
        UserNotification.objects.filter(id__in=[old_read.id, old_unread.id]).update(
            created_at=timezone.now() - timedelta(days=45)
        )

        assert cleanup_old_notifications() == 1

        remaining = set(UserNotification.objects.values_list('id', flat=True))
        assert remaining == {old_unread.id, fresh.id}


@pytest.mark.django_db(transaction=True)
class TestWebsocket:

    def application(self):
        return JWTAuthMiddleware(URLRouter(websocket_urlpatterns))

    def test_connect_and_receive(self, user):
        token = jwt_service.generate_access_token(user)

        async def scenario():
            communicator = WebsocketCommunicator(self.application(), f'/ws/notifications/?token={token}')
            connected, _ = await communicator.connect()
            assert connected

            hello = await communicator.receive_json_from()

            await communicator.send_json_to({'event': 'ping', 'timestamp': 42})
            pong = await communicator.receive_json_from()

            await database_sync_to_async(notification_service.notify)(user, 'system', 'Live')
            pushed = await communicator.receive_json_from()

            await communicator.disconnect()
            return hello, pong, pushed

        hello, pong, pushed = async_to_sync(scenario)()

        assert hello['event'] == 'authenticated'
        assert hello['data']['username'] == 'alice'
        assert hello['data']['realtime'] is True
        assert pong == {'event': 'pong', 'timestamp': 42}
        assert pushed['event'] == 'notification'
        assert pushed['data']['title'] == 'Live'

    def test_malformed_messages_keep_socket_open(self, user):
        token = jwt_service.generate_access_token(user)

        async def scenario():
            communicator = WebsocketCommunicator(self.application(), f'/ws/notifications/?token={token}')
            await communicator.connect()
            await communicator.receive_json_from()

            replies = []
            for payload in ('[]', '5', 'not json'):
                await communicator.send_to(text_data=payload)
                replies.append(await communicator.receive_json_from())

            await communicator.send_json_to({'event': 'ping'})
            pong = await communicator.receive_json_from()
            await communicator.disconnect()
            return replies, pong

        replies, pong = async_to_sync(scenario)()

        assert replies == [{'event': 'error', 'data': {'message': 'Invalid JSON'}}] * 3
        assert pong['event'] == 'pong'

    def test_rejects_missing_token(self):
        async def scenario():
            communicator = WebsocketCommunicator(self.application(), '/ws/notifications/')
            result = await communicator.connect()
            await communicator.disconnect()
            return result

        connected, code = async_to_sync(scenario)()

        assert not connected
        assert code == 4001

    def test_rejects_refresh_token(self, user):
        token = jwt_service.generate_refresh_token(user)

        async def scenario():
            communicator = WebsocketCommunicator(self.application(), f'/ws/notifications/?token={token}')
            result = await communicator.connect()
            await communicator.disconnect()
            return result

        connected, _ = async_to_sync(scenario)()
        assert not connected
