"""
Invitation service.

New members join through an invitation from an existing member; the
invited_by chain forms the invitation tree.
"""

import logging
from datetime import timedelta
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.utils import timezone

from apps.authentication.models import User
from apps.core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from .models import Invitation

logger = logging.getLogger(__name__)


class InvitationService:
    MIN_KARMA = 5
    MAX_PER_WEEK = 5

    def can_invite(self, user: User) -> bool:
        if user.is_banned or user.disabled_invites:
            return False
        if user.karma < self.MIN_KARMA:
            return False
        return self.recent_invitation_count(user) < self.MAX_PER_WEEK

    def recent_invitation_count(self, user: User) -> int:
        week_ago = timezone.now() - timedelta(days=7)
        return Invitation.objects.filter(inviter=user, created_at__gte=week_ago).count()

    def create_invitation(self, user: User, email: str, memo: str = '') -> Invitation:
        """
        Raises:
            Forbidden: If the user may not invite right now
            ValidationFailed: If the email is malformed
            Conflict: If the address is registered or already has a pending invite
        """
        if not self.can_invite(user):
            raise Forbidden(
                'You cannot send invitations right now',
                code='CANNOT_INVITE',
                details={
                    'min_karma': self.MIN_KARMA,
                    'max_per_week': self.MAX_PER_WEEK,
                },
            )

        email = (email or '').strip().lower()
        try:
            validate_email(email)
        except DjangoValidationError:
            raise ValidationFailed('A valid email address is required')

        if User.objects.filter(email=email).exists():
            raise Conflict('A user with this email is already registered')

        if Invitation.objects.filter(email=email, used_at__isnull=True).exists():
            raise Conflict('An invitation has already been sent to this email')

        invitation = Invitation.objects.create(inviter=user, email=email, memo=memo or '')
        logger.info(f'User {user.username} invited {email}')
        return invitation

    def validate_code(self, code: Optional[str]) -> Invitation:
        """
        The unused invitation for a code.

        Raises:
            ValidationFailed: If the code is missing, unknown or already used
        """
        if not code:
            raise ValidationFailed('An invitation code is required', code='INVITATION_REQUIRED')

        invitation = Invitation.objects.select_related('inviter').filter(code=code.strip()).first()
        if invitation is None or invitation.is_used:
            raise ValidationFailed('Invitation code is invalid or has already been used', code='INVALID_INVITATION')
        return invitation

    def get_by_code(self, code: str) -> Invitation:
        invitation = Invitation.objects.select_related('inviter').filter(code=code).first()
        if invitation is None:
            raise NotFound('Invitation not found')
        return invitation

    def use_invitation(self, invitation: Invitation, new_user: User) -> None:
        invitation.used_at = timezone.now()
        invitation.new_user = new_user
        invitation.save(update_fields=['used_at', 'new_user'])

    def invitations_for(self, user: User):
        return Invitation.objects.filter(inviter=user).select_related('new_user')

    def stats(self, user: User) -> dict:
        invitations = Invitation.objects.filter(inviter=user)
        sent = invitations.count()
        used = invitations.filter(used_at__isnull=False).count()
        return {
            'sent': sent,
            'used': used,
            'pending': sent - used,
            'sent_this_week': self.recent_invitation_count(user),
            'can_invite': self.can_invite(user),
        }

    def invitation_tree(self, root: Optional[User] = None) -> list:
        """
        Nested {'user', 'karma', 'children'} dicts following invited_by.

        Without a root the forest starts at users nobody invited.
        """
        rows = list(User.objects.values('id', 'username', 'karma', 'invited_by_id').order_by('created_at', 'id'))
        children = {}
        for row in rows:
            children.setdefault(row['invited_by_id'], []).append(row)

        def build(row, seen):
            if row['id'] in seen:
                return None
            seen = seen | {row['id']}
            return {
                'user': row['username'],
                'karma': row['karma'],
                'children': [
                    node for node in (build(child, seen) for child in children.get(row['id'], []))
                    if node is not None
                ],
            }

        if root is not None:
            root_row = next((row for row in rows if row['id'] == root.id), None)
            return [build(root_row, frozenset())] if root_row else []

        return [build(row, frozenset()) for row in children.get(None, [])]


# Create singleton instance
invitation_service = InvitationService()
