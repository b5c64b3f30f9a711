"""
Invitation views.
"""

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated

from .serializers import InvitationSerializer, CreateInvitationSerializer
from .services import invitation_service


class InvitationListView(APIView):
    """
    GET  /api/v1/invitations - invitations sent by the current user, with stats
    POST /api/v1/invitations - invite an email address
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        invitations = invitation_service.invitations_for(request.user)
        return Response({
            'invitations': InvitationSerializer(invitations, many=True).data,
            'stats': invitation_service.stats(request.user),
        })

    def post(self, request):
        serializer = CreateInvitationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        invitation = invitation_service.create_invitation(
            request.user,
            serializer.validated_data['email'],
            serializer.validated_data.get('memo', ''),
        )
        return Response({'invitation': InvitationSerializer(invitation).data}, status=status.HTTP_201_CREATED)


class InvitationTreeView(APIView):
    """
    GET /api/v1/invitations/tree
    """
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({'tree': invitation_service.invitation_tree()})


class InvitationCodeView(APIView):
    """
    Check a code before showing the signup form

    GET /api/v1/invitations/<code>
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, code):
        invitation = invitation_service.get_by_code(code)
        return Response({
            'valid': not invitation.is_used,
            'email': invitation.email,
            'inviter': invitation.inviter.username,
        })
