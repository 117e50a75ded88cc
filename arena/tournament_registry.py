import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Dict

from .errors import ArenaError, NotFound, Forbidden, ValidationError, InvalidState
from .models import Tournament, Team, TeamMember, Match, MatchResult, TournamentRegistration, User
from .payloads import require, reject_unknown, parse_choice, parse_datetime, parse_decimal, parse_int
from .scoring import ScoringRules
from shared.state_machine import TournamentStateMachine, TournamentState, MatchState, TransitionError

logger = logging.getLogger(__name__)

MODES = ('Solo', 'Duo', 'Squad')
TYPES = ('Free', 'Paid', 'Invite')


class TournamentRegistry:
    """
    Manages tournament records and their lifecycle:
    - Create/update/delete tournaments
    - open -> live -> completed through TournamentStateMachine
    - Standings over completed matches and prize distribution on completion
    """

    MUTABLE_FIELDS = (
        'name', 'description', 'mode', 'type', 'entry_fee', 'prize_pool', 'max_teams',
        'start_date', 'end_date', 'rules', 'banner_url', 'status'
    )

    def __init__(self, session, scoring: ScoringRules = None):
        self.session = session
        self.scoring = scoring or ScoringRules()

    def create_tournament(self, data: dict, created_by: User) -> Tournament:
        """Create a new tournament accepting registrations."""
        require(data, 'name', 'mode', 'type', 'prize_pool', 'max_teams', 'start_date')

        status = data.get('status', TournamentState.OPEN.value)
        if status != TournamentState.OPEN.value:
            raise ValidationError("New tournaments must start in open state")

        tournament = Tournament(
            name=data['name'],
            description=data.get('description'),
            mode=parse_choice(data['mode'], 'mode', MODES),
            type=parse_choice(data['type'], 'type', TYPES),
            status=status,
            entry_fee=parse_decimal(data.get('entry_fee', 0), 'entry_fee'),
            prize_pool=parse_decimal(data['prize_pool'], 'prize_pool'),
            max_teams=parse_int(data['max_teams'], 'max_teams', minimum=1),
            current_teams=0,
            start_date=parse_datetime(data['start_date'], 'start_date'),
            end_date=parse_datetime(data.get('end_date'), 'end_date'),
            rules=data.get('rules'),
            banner_url=data.get('banner_url'),
            created_by=created_by.id
        )

        self.session.add(tournament)
        self.session.commit()

        logger.info(f"User {created_by.id} created tournament {tournament.id} ({tournament.name})")
        return tournament

    def get_tournament(self, tournament_id: str) -> Tournament:
        tournament = self.session.get(Tournament, tournament_id)
        if not tournament:
            raise NotFound("Tournament not found")
        return tournament

    def list_tournaments(self, status: str = None) -> List[Tournament]:
        """List tournaments, newest first, optionally filtered by status."""
        query = self.session.query(Tournament)

        if status:
            try:
                TournamentStateMachine.parse_state(status)
            except ValueError as e:
                raise ValidationError(str(e))
            query = query.filter_by(status=status)

        return query.order_by(Tournament.created_at.desc()).all()

    @staticmethod
    def _check_owner(tournament: Tournament, user: User):
        if tournament.created_by != user.id and not user.is_admin:
            raise Forbidden("Only the organiser can modify this tournament")

    def update_tournament(self, tournament_id: str, changes: dict, requested_by: User) -> Tournament:
        """Apply an allow-listed partial update; status changes go through the state machine."""
        reject_unknown(changes, self.MUTABLE_FIELDS)
        tournament = self.get_tournament(tournament_id)
        self._check_owner(tournament, requested_by)

        if tournament.status == TournamentState.COMPLETED.value:
            raise InvalidState("Tournament is completed and can no longer change")

        try:
            self._apply_changes(tournament, changes)
        except ArenaError:
            self.session.rollback()
            raise

        self.session.commit()
        return tournament

    def _apply_changes(self, tournament: Tournament, changes: dict):
        for field in ('description', 'rules', 'banner_url'):
            if field in changes:
                setattr(tournament, field, changes[field])

        if 'name' in changes:
            if not changes['name']:
                raise ValidationError("name cannot be empty")
            tournament.name = changes['name']
        if 'mode' in changes:
            tournament.mode = parse_choice(changes['mode'], 'mode', MODES)
        if 'type' in changes:
            tournament.type = parse_choice(changes['type'], 'type', TYPES)
        if 'entry_fee' in changes:
            tournament.entry_fee = parse_decimal(changes['entry_fee'], 'entry_fee')
        if 'prize_pool' in changes:
            tournament.prize_pool = parse_decimal(changes['prize_pool'], 'prize_pool')
        if 'start_date' in changes:
            if changes['start_date'] is None:
                raise ValidationError("start_date cannot be empty")
            tournament.start_date = parse_datetime(changes['start_date'], 'start_date')
        if 'end_date' in changes:
            tournament.end_date = parse_datetime(changes['end_date'], 'end_date')
        if 'max_teams' in changes:
            max_teams = parse_int(changes['max_teams'], 'max_teams', minimum=1)
            if max_teams < tournament.current_teams:
                raise ValidationError(
                    f"max_teams cannot be lower than the {tournament.current_teams} registered teams"
                )
            tournament.max_teams = max_teams

        if 'status' in changes:
            self._change_status(tournament, changes['status'])

    def _change_status(self, tournament: Tournament, status: str):
        try:
            target = TournamentStateMachine.parse_state(status)
        except ValueError as e:
            raise ValidationError(str(e))

        if target.value == tournament.status:
            return

        sm = TournamentStateMachine.from_state_string(tournament.status)
        old_state = sm.state.value
        try:
            sm.transition_to(target, {'matches': [m.to_dict() for m in tournament.matches]})
        except TransitionError as e:
            logger.warning(f"Rejected tournament {tournament.id} transition {old_state} -> {target.value}: {e}")
            if sm.state == TournamentState.LIVE and target == TournamentState.COMPLETED:
                raise InvalidState("Cannot complete tournament while matches are unfinished")
            raise InvalidState(str(e))

        if sm.state == TournamentState.COMPLETED:
            self._distribute_prizes(tournament)
            tournament.end_date = tournament.end_date or datetime.utcnow()

        tournament.status = sm.state.value
        logger.info(f"Tournament {tournament.id} moved {old_state} -> {tournament.status}")

    def _distribute_prizes(self, tournament: Tournament):
        """
        Pay out the prize pool over the final standings and credit the
        winning team's members with a tournament win.
        """
        placed = [s for s in self.get_standings(tournament.id) if s['matches_played'] > 0]
        shares = self.scoring.prize_shares(Decimal(tournament.prize_pool or 0), len(placed))

        for standing, share in zip(placed, shares):
            team = self.session.get(Team, standing['team_id'])
            team.total_earnings = (team.total_earnings or Decimal('0')) + share
            logger.info(f"Team {team.id} earned {share} from tournament {tournament.id}")

        if placed:
            winners = self.session.query(User).join(
                TeamMember, TeamMember.user_id == User.id
            ).filter(TeamMember.team_id == placed[0]['team_id']).all()
            for user in winners:
                user.tournaments_won = (user.tournaments_won or 0) + 1

    def delete_tournament(self, tournament_id: str, requested_by: User) -> bool:
        """Delete a tournament together with its matches and registrations."""
        tournament = self.get_tournament(tournament_id)
        self._check_owner(tournament, requested_by)

        self.session.delete(tournament)
        self.session.commit()

        logger.info(f"Deleted tournament {tournament_id}")
        return True

    def get_standings(self, tournament_id: str) -> List[Dict]:
        """
        Tournament standings over completed matches.

        Registered teams appear even before playing. Sorted by points desc,
        then kills desc, then match wins desc.
        """
        tournament = self.get_tournament(tournament_id)

        table: Dict[str, Dict] = {}

        def row_for(team: Team) -> Dict:
            if team.id not in table:
                table[team.id] = {
                    'team_id': team.id,
                    'name': team.name,
                    'tag': team.tag,
                    'matches_played': 0,
                    'wins': 0,
                    'kills': 0,
                    'points': 0,
                }
            return table[team.id]

        registrations = self.session.query(TournamentRegistration).filter_by(
            tournament_id=tournament.id
        ).all()
        for registration in registrations:
            row_for(registration.team)

        results = self.session.query(MatchResult).join(
            Match, Match.id == MatchResult.match_id
        ).filter(
            Match.tournament_id == tournament.id,
            Match.status == MatchState.COMPLETED.value
        ).all()
        for result in results:
            row = row_for(result.team)
            row['matches_played'] += 1
            row['kills'] += result.kills
            row['points'] += result.points
            if result.position == 1:
                row['wins'] += 1

        standings = sorted(
            table.values(),
            key=lambda s: (-s['points'], -s['kills'], -s['wins'], s['name'])
        )
        for i, s in enumerate(standings):
            s['rank'] = i + 1

        return standings
