"""
Websocket consumer for realtime notifications.
"""

import asyncio
import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from .services import notification_service, user_group

logger = logging.getLogger(__name__)


class NotificationConsumer(AsyncWebsocketConsumer):
    """
    One connection per browser tab, joined to the user's group

    Without a working channel layer the connection stays open in polling
    mode: the client is told realtime is off and fetches over HTTP.
    """

    # Class-level flag to prevent log spam
    _layer_error_logged = False

    async def connect(self):
        self.user = self.scope.get('user')
        self.group_joined = False

        if not getattr(self.user, 'is_authenticated', False) or not getattr(self.user, 'id', None):
            await self.close(code=4001)
            return

        await self.accept()

        self.group_name = user_group(self.user.id)
        await self._safe_group_add()

        unread = await database_sync_to_async(notification_service.unread_count)(self.user)
        await self.send(text_data=json.dumps({
            'event': 'authenticated',
            'data': {
                'userId': self.user.id,
                'username': self.user.username,
                'unreadCount': unread,
                'realtime': self.group_joined,
            }
        }))

        mode = 'realtime' if self.group_joined else 'polling'
        logger.info(f'User {self.user.id} connected to notifications ({mode})')

    async def _safe_group_add(self):
        if self.channel_layer is None:
            self._log_layer_error('no channel layer configured')
            return
        try:
            await asyncio.wait_for(
                self.channel_layer.group_add(self.group_name, self.channel_name),
                timeout=5.0
            )
            self.group_joined = True
            NotificationConsumer._layer_error_logged = False
        except asyncio.TimeoutError:
            self._log_layer_error('timeout')
        except Exception as e:
            self._log_layer_error(str(e))

    def _log_layer_error(self, error_msg):
        if not NotificationConsumer._layer_error_logged:
            logger.warning(f'Channel layer unavailable: {error_msg}. Falling back to polling mode.')
            NotificationConsumer._layer_error_logged = True

    async def disconnect(self, close_code):
        if not getattr(self, 'group_joined', False):
            return
        try:
            await asyncio.wait_for(
                self.channel_layer.group_discard(self.group_name, self.channel_name),
                timeout=5.0
            )
        except Exception as e:
            logger.debug(f'group_discard failed on disconnect: {e}')

    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or '')
        except ValueError:
            data = None

        if not isinstance(data, dict):
            await self.send(text_data=json.dumps({
                'event': 'error',
                'data': {'message': 'Invalid JSON'}
            }))
            return

        if data.get('event') == 'ping':
            await self.send(text_data=json.dumps({
                'event': 'pong',
                'timestamp': data.get('timestamp')
            }))

    async def notification_event(self, event):
        """Group messages of type notification.event"""
        await self.send(text_data=json.dumps({
            'event': event['event'],
            'data': event['data']
        }))
