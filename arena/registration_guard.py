import logging
from typing import List

from sqlalchemy.exc import IntegrityError

from .errors import NotFound, AlreadyRegistered, CapacityExceeded, RegistrationClosed
from .models import Tournament, Team, TournamentRegistration
from shared.state_machine import TournamentState

logger = logging.getLogger(__name__)


class RegistrationGuard:
    """
    Binds teams to tournaments:
    - at most one registration per (tournament, team)
    - only while the tournament is open and below max_teams
    - current_teams always equals the number of registration rows

    The row insert and the counter update run in one transaction. The unique
    constraint on (tournament_id, team_id) is what decides duplicates, and the
    counter is claimed with a conditional UPDATE, so two concurrent requests
    cannot both take the last slot.
    """

    def __init__(self, session):
        self.session = session

    def _get_tournament(self, tournament_id: str) -> Tournament:
        tournament = self.session.get(Tournament, tournament_id)
        if not tournament:
            raise NotFound("Tournament not found")
        return tournament

    @staticmethod
    def _check_accepting(tournament: Tournament):
        if tournament.status != TournamentState.OPEN.value:
            raise RegistrationClosed(f"Cannot register teams in {tournament.status} state")
        if tournament.current_teams >= tournament.max_teams:
            raise CapacityExceeded("Tournament is full")

    def register_team(self, tournament_id: str, team_id: str) -> TournamentRegistration:
        """Register a team into an open tournament, consuming one slot."""
        tournament = self._get_tournament(tournament_id)
        if not self.session.get(Team, team_id):
            raise NotFound("Team not found")

        self._check_accepting(tournament)

        registration = TournamentRegistration(tournament_id=tournament_id, team_id=team_id)
        self.session.add(registration)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            logger.warning(f"Duplicate registration of team {team_id} in {tournament_id}")
            raise AlreadyRegistered("Team already registered")

        claimed = self.session.query(Tournament).filter(
            Tournament.id == tournament_id,
            Tournament.status == TournamentState.OPEN.value,
            Tournament.current_teams < Tournament.max_teams
        ).update(
            {Tournament.current_teams: Tournament.current_teams + 1},
            synchronize_session=False
        )

        if claimed != 1:
            # Lost a race for the last slot or the tournament just closed
            self.session.rollback()
            self._check_accepting(self._get_tournament(tournament_id))
            raise CapacityExceeded("Tournament is full")

        self.session.commit()
        logger.info(f"Registered team {team_id} in tournament {tournament_id}")
        return registration

    def unregister_team(self, tournament_id: str, team_id: str) -> bool:
        """Withdraw a team while registration is still open, freeing its slot."""
        tournament = self._get_tournament(tournament_id)
        if tournament.status != TournamentState.OPEN.value:
            raise RegistrationClosed(f"Cannot unregister teams in {tournament.status} state")

        registration = self.session.query(TournamentRegistration).filter_by(
            tournament_id=tournament_id,
            team_id=team_id
        ).first()
        if not registration:
            raise NotFound("Team is not registered in this tournament")

        self.session.delete(registration)
        self._decrement(tournament_id)
        self.session.commit()

        logger.info(f"Unregistered team {team_id} from tournament {tournament_id}")
        return True

    def release_team(self, team_id: str) -> int:
        """
        Drop every registration held by a team and give the slots back.

        Does not commit; the caller owns the transaction (team deletion).
        """
        registrations = self.session.query(TournamentRegistration).filter_by(team_id=team_id).all()
        for registration in registrations:
            self._decrement(registration.tournament_id)
            self.session.delete(registration)
        return len(registrations)

    def _decrement(self, tournament_id: str):
        self.session.query(Tournament).filter(
            Tournament.id == tournament_id,
            Tournament.current_teams > 0
        ).update(
            {Tournament.current_teams: Tournament.current_teams - 1},
            synchronize_session=False
        )

    def list_registrations(self, tournament_id: str) -> List[TournamentRegistration]:
        self._get_tournament(tournament_id)
        return self.session.query(TournamentRegistration).filter_by(
            tournament_id=tournament_id
        ).order_by(TournamentRegistration.registered_at).all()

    def is_registered(self, tournament_id: str, team_id: str) -> bool:
        return self.session.query(TournamentRegistration).filter_by(
            tournament_id=tournament_id,
            team_id=team_id
        ).count() > 0
