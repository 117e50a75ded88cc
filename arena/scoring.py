from decimal import Decimal, ROUND_DOWN
from typing import Dict, List, Optional, Sequence


class ScoringRules:
    """
    BGMI point system used for match results and prize distribution.

    A team's points in a match are its placement points plus a flat value per
    kill. Default placement table (1st..8th): 10, 6, 5, 4, 3, 2, 1, 1.
    """

    DEFAULT_PLACEMENT_POINTS = {1: 10, 2: 6, 3: 5, 4: 4, 5: 3, 6: 2, 7: 1, 8: 1}
    DEFAULT_PRIZE_SPLIT = (0.5, 0.3, 0.2)

    def __init__(
        self,
        kill_points: int = 1,
        placement_points: Optional[Dict[int, int]] = None,
        prize_split: Optional[Sequence[float]] = None
    ):
        self.kill_points = kill_points
        self.placement_points = dict(placement_points or self.DEFAULT_PLACEMENT_POINTS)
        self.prize_split = list(prize_split or self.DEFAULT_PRIZE_SPLIT)

    @classmethod
    def from_config(cls, config) -> "ScoringRules":
        return cls(
            kill_points=config.get('KILL_POINTS', 1),
            placement_points=config.get('PLACEMENT_POINTS'),
            prize_split=config.get('PRIZE_SPLIT')
        )

    def placement_points_for(self, position: Optional[int]) -> int:
        if position is None:
            return 0
        return self.placement_points.get(position, 0)

    def points_for(self, kills: int, position: Optional[int] = None) -> int:
        """Total match points for a team with ``kills`` finishing at ``position``."""
        return kills * self.kill_points + self.placement_points_for(position)

    def prize_shares(self, prize_pool: Decimal, placed_teams: int) -> List[Decimal]:
        """
        Split a prize pool over the top finishers.

        Returns one amount per paid place, at most ``placed_teams`` of them.
        Shares for places nobody occupies are not paid out. Amounts are
        rounded down to the cent; the first place takes the rounding remainder.

        Returns:
            [first_place_amount, second_place_amount, ...]
        """
        places = min(len(self.prize_split), placed_teams)
        if places == 0 or prize_pool <= 0:
            return []

        cent = Decimal('0.01')
        shares = [
            (prize_pool * Decimal(str(fraction))).quantize(cent, rounding=ROUND_DOWN)
            for fraction in self.prize_split[:places]
        ]
        paid_fraction = sum(Decimal(str(f)) for f in self.prize_split[:places])
        target = (prize_pool * paid_fraction).quantize(cent, rounding=ROUND_DOWN)
        shares[0] += target - sum(shares)
        return shares
