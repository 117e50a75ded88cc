from decimal import Decimal
from typing import List, Dict

from sqlalchemy import func

from .models import User, Team, Tournament, Match
from shared.state_machine import TournamentState, MatchState

ACTIVE_STATES = (TournamentState.OPEN.value, TournamentState.LIVE.value)


class RankingAggregator:
    """
    Read-time leaderboards and platform stats.

    Everything is computed from the stored counters on each call; the
    counters themselves are written when matches and tournaments complete.
    """

    def __init__(self, session, limit: int = 50):
        self.session = session
        self.limit = limit

    def get_player_rankings(self) -> List[User]:
        """Top players by total points, then tournaments won."""
        return self.session.query(User).order_by(
            User.total_points.desc(),
            User.tournaments_won.desc(),
            User.total_kills.desc(),
            User.id
        ).limit(self.limit).all()

    def get_team_rankings(self) -> List[Team]:
        """Top teams by match wins, then earnings."""
        return self.session.query(Team).order_by(
            Team.total_wins.desc(),
            Team.total_earnings.desc(),
            Team.name
        ).limit(self.limit).all()

    def get_tournament_stats(self) -> Dict:
        """
        Platform summary:
            active_tournaments: tournaments that are open or live
            total_prize_pool: prize pool summed over those tournaments
            registered_teams: teams on the platform
            live_matches: matches currently live
        """
        active_tournaments = self.session.query(func.count(Tournament.id)).filter(
            Tournament.status.in_(ACTIVE_STATES)
        ).scalar()

        total_prize_pool = self.session.query(
            func.coalesce(func.sum(Tournament.prize_pool), 0)
        ).filter(
            Tournament.status.in_(ACTIVE_STATES)
        ).scalar()

        registered_teams = self.session.query(func.count(Team.id)).scalar()

        live_matches = self.session.query(func.count(Match.id)).filter(
            Match.status == MatchState.LIVE.value
        ).scalar()

        return {
            'active_tournaments': active_tournaments or 0,
            'total_prize_pool': str(Decimal(str(total_prize_pool or 0)).quantize(Decimal('0.01'))),
            'registered_teams': registered_teams or 0,
            'live_matches': live_matches or 0,
        }
