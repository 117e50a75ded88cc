import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from .errors import ArenaError, NotFound, Forbidden, Conflict, ValidationError, InvalidState
from .models import Team, TeamMember, TeamInvitation, User
from .payloads import require
from .registration_guard import RegistrationGuard
from shared.state_machine import InvitationStateMachine, InvitationState, TransitionError

logger = logging.getLogger(__name__)


class TeamManager:
    """
    Manages teams, their members and invitations.
    The creator is the team's only captain; invitees join on acceptance.
    """

    def __init__(self, session, registrations: RegistrationGuard = None, max_members: int = 4):
        self.session = session
        self.registrations = registrations or RegistrationGuard(session)
        self.max_members = max_members

    def get_team(self, team_id: str) -> Team:
        team = self.session.get(Team, team_id)
        if not team:
            raise NotFound("Team not found")
        return team

    def list_teams(self) -> List[Team]:
        return self.session.query(Team).order_by(Team.total_wins.desc(), Team.created_at).all()

    def get_user_team(self, user_id: str) -> Optional[Team]:
        return self.session.query(Team).join(
            TeamMember, TeamMember.team_id == Team.id
        ).filter(TeamMember.user_id == user_id).order_by(TeamMember.joined_at).first()

    def list_members(self, team_id: str) -> List[TeamMember]:
        self.get_team(team_id)
        return self.session.query(TeamMember).filter_by(
            team_id=team_id
        ).order_by(TeamMember.joined_at).all()

    def create_team(self, data: dict, captain: User) -> Team:
        """Create a team and add its creator as captain in the same transaction."""
        require(data, 'name', 'tag')
        tag = str(data['tag']).strip()
        if len(tag) > 10:
            raise ValidationError("tag must be at most 10 characters")

        team = Team(
            name=str(data['name']).strip(),
            tag=tag,
            logo_url=data.get('logo_url'),
            captain_id=captain.id
        )
        self.session.add(team)
        self.session.flush()

        self.session.add(TeamMember(team_id=team.id, user_id=captain.id, role='captain'))
        self.session.commit()

        logger.info(f"User {captain.id} created team {team.id} [{team.tag}]")
        return team

    def delete_team(self, team_id: str, requested_by: User) -> bool:
        """Delete a team; its tournament slots are released in the same transaction."""
        team = self.get_team(team_id)
        if team.captain_id != requested_by.id and not requested_by.is_admin:
            raise Forbidden("Only the captain can delete this team")

        released = self.registrations.release_team(team_id)
        self.session.delete(team)
        self.session.commit()

        logger.info(f"Deleted team {team_id}, released {released} tournament slot(s)")
        return True

    def _is_member(self, team_id: str, user_id: str) -> bool:
        return self.session.query(TeamMember).filter_by(
            team_id=team_id,
            user_id=user_id
        ).count() > 0

    # ==================== Invitations ====================

    def invite(self, team_id: str, user_id: str, invited_by: User) -> TeamInvitation:
        team = self.get_team(team_id)
        if team.captain_id != invited_by.id:
            raise Forbidden("Only the team captain can send invitations")
        if not self.session.get(User, user_id):
            raise NotFound("User not found")
        if self._is_member(team_id, user_id):
            raise Conflict("User is already a member of this team")

        pending = self.session.query(TeamInvitation).filter_by(
            team_id=team_id,
            user_id=user_id,
            status=InvitationState.PENDING.value
        ).first()
        if pending:
            raise Conflict("User already has a pending invitation to this team")

        invitation = TeamInvitation(team_id=team_id, user_id=user_id, invited_by=invited_by.id)
        self.session.add(invitation)
        self.session.commit()

        logger.info(f"User {invited_by.id} invited {user_id} to team {team_id}")
        return invitation

    def get_invitation(self, invitation_id: str) -> TeamInvitation:
        invitation = self.session.get(TeamInvitation, invitation_id)
        if not invitation:
            raise NotFound("Invitation not found")
        return invitation

    def list_user_invitations(self, user_id: str) -> List[TeamInvitation]:
        """Pending invitations addressed to a user."""
        return self.session.query(TeamInvitation).filter_by(
            user_id=user_id,
            status=InvitationState.PENDING.value
        ).order_by(TeamInvitation.created_at.desc()).all()

    def respond_to_invitation(self, invitation_id: str, status: str, responder: User) -> TeamInvitation:
        """
        Accept or decline a pending invitation.

        Accepting adds the invitee as a member exactly once; responding to an
        invitation that is no longer pending raises InvalidState.
        """
        invitation = self.get_invitation(invitation_id)
        if invitation.user_id != responder.id:
            raise Forbidden("Only the invited user can respond to this invitation")

        try:
            target = InvitationStateMachine.parse_state(status)
        except ValueError as e:
            raise ValidationError(str(e))

        sm = InvitationStateMachine.from_state_string(invitation.status)
        try:
            sm.transition_to(target)
        except TransitionError:
            raise InvalidState(f"Invitation is already {invitation.status}")

        invitation.status = sm.state.value
        try:
            if sm.state == InvitationState.ACCEPTED:
                self._add_member(invitation.team_id, invitation.user_id)
            self.session.commit()
        except ArenaError:
            self.session.rollback()
            raise
        except IntegrityError:
            # Lost a race with a concurrent acceptance; the member row exists
            self.session.rollback()
            raise InvalidState("Invitation was already accepted")

        logger.info(f"User {responder.id} {invitation.status} invitation {invitation.id}")
        return invitation

    def _add_member(self, team_id: str, user_id: str, role: str = 'member') -> TeamMember:
        if self._is_member(team_id, user_id):
            raise Conflict("User is already a member of this team")

        member_count = self.session.query(TeamMember).filter_by(team_id=team_id).count()
        if member_count >= self.max_members:
            raise Conflict(f"Team is full ({self.max_members} members)")

        member = TeamMember(team_id=team_id, user_id=user_id, role=role)
        self.session.add(member)
        self.session.flush()
        return member
