import logging
from datetime import datetime
from typing import List, Dict, Optional

from sqlalchemy.exc import IntegrityError

from .errors import ArenaError, NotFound, ValidationError, Conflict, InvalidState
from .models import Match, MatchResult, Team, TeamMember, Tournament, User
from .name_generator import generate_match_name, generate_room_id, generate_room_password
from .payloads import require, reject_unknown, parse_datetime, parse_int
from .scoring import ScoringRules
from shared.state_machine import (
    MatchStateMachine, MatchState, ResultStateMachine, ResultState,
    TournamentState, TransitionError
)

logger = logging.getLogger(__name__)


class MatchLifecycleManager:
    """
    Owns Match and MatchResult state:
    - match status: scheduled -> live -> completed (terminal)
    - result status: alive -> eliminated, with finishing position
    - points, and the player/team counters credited when a match completes
    """

    MATCH_FIELDS = (
        'name', 'round', 'room_id', 'room_password', 'start_time', 'end_time',
        'current_zone', 'players_alive', 'status'
    )
    RESULT_FIELDS = ('kills', 'status', 'position', 'eliminated_at')

    def __init__(self, session, scoring: ScoringRules = None):
        self.session = session
        self.scoring = scoring or ScoringRules()

    # ==================== Matches ====================

    def get_match(self, match_id: str) -> Match:
        match = self.session.get(Match, match_id)
        if not match:
            raise NotFound("Match not found")
        return match

    def list_matches(self) -> List[Match]:
        return self.session.query(Match).order_by(Match.start_time.desc()).all()

    def list_tournament_matches(self, tournament_id: str) -> List[Match]:
        if not self.session.get(Tournament, tournament_id):
            raise NotFound("Tournament not found")
        return self.session.query(Match).filter_by(
            tournament_id=tournament_id
        ).order_by(Match.start_time).all()

    def create_match(self, data: dict) -> Match:
        """Create a scheduled match in a tournament that has not finished."""
        require(data, 'tournament_id', 'round', 'start_time')

        tournament = self.session.get(Tournament, data['tournament_id'])
        if not tournament:
            raise NotFound("Tournament not found")
        if tournament.status == TournamentState.COMPLETED.value:
            raise InvalidState("Cannot add matches to a completed tournament")

        status = data.get('status', MatchState.SCHEDULED.value)
        if status != MatchState.SCHEDULED.value:
            raise ValidationError("New matches must start in scheduled state")

        match = Match(
            tournament_id=tournament.id,
            round=str(data['round']),
            status=status,
            start_time=parse_datetime(data['start_time'], 'start_time'),
            end_time=parse_datetime(data.get('end_time'), 'end_time'),
            room_id=data.get('room_id'),
            room_password=data.get('room_password'),
        )
        if data.get('current_zone') is not None:
            match.current_zone = parse_int(data['current_zone'], 'current_zone', minimum=1)
        if data.get('players_alive') is not None:
            match.players_alive = parse_int(data['players_alive'], 'players_alive', minimum=0)

        if data.get('name'):
            match.name = data['name']
        else:
            match_num = len(tournament.matches) + 1
            match.name = generate_match_name(match.round, match_num)

        self.session.add(match)
        self.session.commit()

        logger.info(f"Created match {match.id} ({match.name}) in tournament {tournament.id}")
        return match

    def update_match(self, match_id: str, changes: dict) -> Match:
        """
        Apply an allow-listed partial update.

        A status change goes through MatchStateMachine; setting the current
        status again is a no-op. Completed matches are read-only.
        """
        reject_unknown(changes, self.MATCH_FIELDS)
        match = self.get_match(match_id)

        if match.status == MatchState.COMPLETED.value:
            raise InvalidState("Match is completed and can no longer change")

        try:
            self._apply_match_changes(match, changes)
        except ArenaError:
            self.session.rollback()
            raise

        self.session.commit()
        return match

    def _apply_match_changes(self, match: Match, changes: dict):
        if 'name' in changes:
            if not changes['name']:
                raise ValidationError("name cannot be empty")
            match.name = changes['name']
        if 'round' in changes:
            if not changes['round']:
                raise ValidationError("round cannot be empty")
            match.round = str(changes['round'])
        if 'room_id' in changes:
            match.room_id = changes['room_id']
        if 'room_password' in changes:
            match.room_password = changes['room_password']
        if 'start_time' in changes:
            if changes['start_time'] is None:
                raise ValidationError("start_time cannot be empty")
            match.start_time = parse_datetime(changes['start_time'], 'start_time')
        if 'end_time' in changes:
            match.end_time = parse_datetime(changes['end_time'], 'end_time')
        if 'current_zone' in changes:
            match.current_zone = parse_int(changes['current_zone'], 'current_zone', minimum=1)
        if 'players_alive' in changes:
            match.players_alive = parse_int(changes['players_alive'], 'players_alive', minimum=0)

        if 'status' in changes:
            self._change_status(match, changes['status'])

    def _change_status(self, match: Match, status: str):
        try:
            target = MatchStateMachine.parse_state(status)
        except ValueError as e:
            raise ValidationError(str(e))

        if target.value == match.status:
            return

        sm = MatchStateMachine.from_state_string(match.status)
        old_state = sm.state.value
        try:
            sm.transition_to(target, {'results': [r.to_dict() for r in match.results]})
        except TransitionError as e:
            logger.warning(f"Rejected match {match.id} transition {old_state} -> {target.value}: {e}")
            if sm.state == MatchState.LIVE and target == MatchState.COMPLETED:
                raise InvalidState("Cannot complete match while more than one team is alive")
            raise InvalidState(str(e))

        if sm.state == MatchState.LIVE:
            match.room_id = match.room_id or generate_room_id()
            match.room_password = match.room_password or generate_room_password()
        elif sm.state == MatchState.COMPLETED:
            self._finalize_positions(match)
            self._credit_counters(match)
            match.end_time = match.end_time or datetime.utcnow()

        match.status = sm.state.value
        logger.info(f"Match {match.id} moved {old_state} -> {match.status}")

    def _finalize_positions(self, match: Match):
        """Give the surviving team the one unassigned position."""
        results = match.results
        expected = set(range(1, len(results) + 1))
        free = sorted(expected - {r.position for r in results if r.position is not None})

        for result in results:
            if result.status == ResultState.ALIVE.value:
                result.position = free.pop(0)
                result.points = self.scoring.points_for(result.kills, result.position)

        if {r.position for r in results} != expected:
            raise InvalidState("Finishing positions must cover 1..N exactly once")

    def _credit_counters(self, match: Match):
        """
        Credit a completed match to the aggregate counters.

        Every member of a team gains the team's points and kills; the team in
        position 1 gains a win.
        """
        for result in match.results:
            members = self.session.query(User).join(
                TeamMember, TeamMember.user_id == User.id
            ).filter(TeamMember.team_id == result.team_id).all()

            for user in members:
                user.total_points = (user.total_points or 0) + result.points
                user.total_kills = (user.total_kills or 0) + result.kills

            if result.position == 1:
                result.team.total_wins = (result.team.total_wins or 0) + 1
                logger.info(f"Team {result.team_id} won match {match.id}")

    def delete_match(self, match_id: str) -> bool:
        match = self.get_match(match_id)
        if match.status == MatchState.COMPLETED.value:
            raise InvalidState("Completed matches cannot be deleted")
        self.session.delete(match)
        self.session.commit()
        return True

    # ==================== Results ====================

    def get_result(self, result_id: str) -> MatchResult:
        result = self.session.get(MatchResult, result_id)
        if not result:
            raise NotFound("Match result not found")
        return result

    def list_results(self, match_id: str) -> List[MatchResult]:
        """Results by finishing position, teams without one last."""
        self.get_match(match_id)
        results = self.session.query(MatchResult).filter_by(match_id=match_id).all()
        return sorted(results, key=lambda r: (r.position is None, r.position or 0, r.created_at))

    def create_match_result(self, match_id: str, team_id: str, kills=0) -> MatchResult:
        """Enter a team into a match; (match_id, team_id) is unique."""
        match = self.get_match(match_id)
        if not self.session.get(Team, team_id):
            raise NotFound("Team not found")
        if match.status == MatchState.COMPLETED.value:
            raise InvalidState("Cannot add teams to a completed match")
        if any(r.status != ResultState.ALIVE.value for r in match.results):
            raise InvalidState("Cannot add teams after eliminations have started")

        kills = parse_int(kills, 'kills', minimum=0)
        result = MatchResult(
            match_id=match_id,
            team_id=team_id,
            kills=kills,
            points=self.scoring.points_for(kills),
            status=ResultState.ALIVE.value
        )
        self.session.add(result)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.warning(f"Duplicate result for team {team_id} in match {match_id}")
            raise Conflict("Team already has a result in this match")

        return result

    def record_kills(self, result_id: str, kills) -> MatchResult:
        return self.update_result(result_id, {'kills': kills})

    def eliminate_team(
        self,
        result_id: str,
        position: Optional[int] = None,
        eliminated_at: Optional[datetime] = None
    ) -> MatchResult:
        """
        Move a result from alive to eliminated and fix its finishing position.

        An explicit position must lie in 1..N and be unused within the match.
        Without one the team takes the worst unused position, which is the
        number of alive teams when eliminations arrive in order.
        """
        result = self.get_result(result_id)
        try:
            self._eliminate(result, position, eliminated_at)
        except ArenaError:
            self.session.rollback()
            raise

        self._commit_result(result)
        return result

    def update_result(self, result_id: str, changes: dict) -> MatchResult:
        """Typed dispatcher for partial result updates (kills, elimination)."""
        reject_unknown(changes, self.RESULT_FIELDS)
        result = self.get_result(result_id)

        try:
            self._apply_result_changes(result, changes)
        except ArenaError:
            self.session.rollback()
            raise

        self._commit_result(result)
        return result

    def _commit_result(self, result: MatchResult):
        # unique_position_per_match settles concurrent eliminations
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.warning(f"Position clash while eliminating result {result.id}")
            raise Conflict("Position is already taken in this match")

    def _apply_result_changes(self, result: MatchResult, changes: dict):
        target = None
        if 'status' in changes:
            try:
                target = ResultStateMachine.parse_state(changes['status'])
            except ValueError as e:
                raise ValidationError(str(e))

        if target != ResultState.ELIMINATED and ('position' in changes or 'eliminated_at' in changes):
            raise ValidationError("position and eliminated_at are set by elimination")

        if 'kills' in changes:
            kills = parse_int(changes['kills'], 'kills', minimum=0)
            if kills != result.kills:
                self._set_kills(result, kills)

        if target == ResultState.ELIMINATED:
            self._eliminate(result, changes.get('position'), changes.get('eliminated_at'))
        elif target == ResultState.ALIVE and result.status != ResultState.ALIVE.value:
            raise InvalidState("Eliminated teams cannot be revived")

    def _set_kills(self, result: MatchResult, kills: int):
        if result.status != ResultState.ALIVE.value:
            raise InvalidState("Kills can only change while the team is alive")
        if result.match.status != MatchState.LIVE.value:
            raise InvalidState("Kills can only change while the match is live")
        if kills < result.kills:
            raise ValidationError(f"kills cannot decrease (currently {result.kills})")

        result.kills = kills
        result.points = self.scoring.points_for(kills, result.position)

    def _eliminate(self, result: MatchResult, position, eliminated_at):
        sm = ResultStateMachine.from_state_string(result.status)
        if not sm.can_transition('eliminate'):
            logger.warning(f"Result {result.id} is already {result.status}")
            raise InvalidState(f"Team is already {result.status}")

        match = result.match
        if match.status != MatchState.LIVE.value:
            raise InvalidState(f"Cannot eliminate teams while match is {match.status}")

        alive_count = sum(1 for r in match.results if r.status == ResultState.ALIVE.value)
        if alive_count < 2:
            raise InvalidState("The last team alive cannot be eliminated")

        team_count = len(match.results)
        taken = {r.position for r in match.results if r.position is not None}
        if position is None:
            position = max(set(range(1, team_count + 1)) - taken)
        else:
            position = parse_int(position, 'position', minimum=1)
            if position > team_count:
                raise ValidationError(f"position must be between 1 and {team_count}")
            if position in taken:
                raise Conflict(f"Position {position} is already taken in this match")

        sm.transition('eliminate')
        result.status = sm.state.value
        result.position = position
        result.eliminated_at = parse_datetime(eliminated_at, 'eliminated_at') or datetime.utcnow()
        result.points = self.scoring.points_for(result.kills, position)

        logger.info(f"Team {result.team_id} eliminated from match {match.id} in position {position}")

    def get_leaderboard(self, match_id: str) -> List[Dict]:
        """
        In-match standings: alive teams by kills (desc), then eliminated
        teams by finishing position.
        """
        self.get_match(match_id)
        results = self.session.query(MatchResult).filter_by(match_id=match_id).all()

        alive = sorted(
            (r for r in results if r.status == ResultState.ALIVE.value),
            key=lambda r: (-r.kills, -r.points, r.created_at)
        )
        eliminated = sorted(
            (r for r in results if r.status != ResultState.ALIVE.value),
            key=lambda r: r.position
        )

        board = []
        for rank, result in enumerate(alive + eliminated, start=1):
            entry = result.to_dict(include_team=True)
            entry['rank'] = rank
            board.append(entry)
        return board
