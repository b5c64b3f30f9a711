"""
Private message views.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated

from apps.core.exceptions import ValidationFailed
from apps.core.permissions import HasScope
from apps.core.utils.params import pagination
from .serializers import MessageSerializer, MessageReplySerializer, SendMessageSerializer, ReplySerializer
from .services import message_service


class MessageListView(APIView):
    """
    GET  /api/v1/messages?box=inbox|sent
    POST /api/v1/messages  {"recipient", "subject", "body"}
    """
    permission_classes = [IsAuthenticated, HasScope]
    required_scope = 'messages'

    def get(self, request):
        box = request.query_params.get('box', 'inbox')
        if box not in ('inbox', 'sent'):
            raise ValidationFailed('box must be inbox or sent')
        limit, offset = pagination(request)

        fetch = message_service.inbox if box == 'inbox' else message_service.sent
        messages = fetch(request.user, limit, offset)
        return Response({
            'box': box,
            'messages': MessageSerializer(messages, many=True).data,
            'unread_count': message_service.unread_count(request.user),
        })

    def post(self, request):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        message = message_service.send_message(request.user, data['recipient'], data['subject'], data['body'])
        return Response({'message': MessageSerializer(message).data}, status=status.HTTP_201_CREATED)


class MessageDetailView(APIView):
    """
    GET    /api/v1/messages/<short_id>
    DELETE /api/v1/messages/<short_id>
    """
    permission_classes = [IsAuthenticated, HasScope]
    required_scope = 'messages'

    def get(self, request, short_id):
        thread = message_service.thread(request.user, short_id)
        return Response({
            'message': MessageSerializer(thread['message']).data,
            'replies': MessageReplySerializer(thread['replies'], many=True).data,
        })

    def delete(self, request, short_id):
        message = message_service.get_for_participant(request.user, short_id)
        message_service.delete_for(request.user, message)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MessageReplyView(APIView):
    """
    POST /api/v1/messages/<short_id>/replies  {"body"}
    """
    permission_classes = [IsAuthenticated, HasScope]
    required_scope = 'messages'

    def post(self, request, short_id):
        message = message_service.get_for_participant(request.user, short_id)
        serializer = ReplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reply = message_service.reply(request.user, message, serializer.validated_data['body'])
        return Response({'reply': MessageReplySerializer(reply).data}, status=status.HTTP_201_CREATED)


class UnreadCountView(APIView):
    """
    GET /api/v1/messages/unread-count
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'count': message_service.unread_count(request.user)})


class MessageSearchView(APIView):
    """
    GET /api/v1/messages/search?q=
    """
    permission_classes = [IsAuthenticated, HasScope]
    required_scope = 'messages'

    def get(self, request):
        messages = message_service.search(request.user, request.query_params.get('q', ''))
        return Response({'messages': MessageSerializer(messages, many=True).data})


class ConversationView(APIView):
    """
    GET /api/v1/messages/with/<username>
    """
    permission_classes = [IsAuthenticated, HasScope]
    required_scope = 'messages'

    def get(self, request, username):
        messages = message_service.conversation(request.user, username)
        return Response({'messages': MessageSerializer(messages, many=True).data})
