from dataclasses import dataclass
from typing import Optional

from pickem.constants import GameStatus, PickResult, ScoringConstants


@dataclass(frozen=True)
class PickOutcome:
    """Scored result of a single pick"""
    result: str  # 'win', 'loss', 'push'
    points: int
    bonus_points: int = 0
    cover_margin: float = 0.0


class PickScorer:
    """Scores picks against the spread"""

    @staticmethod
    def adjusted_margin(home_score: int, away_score: int, spread: float) -> float:
        """
        Home margin after applying the home line

        Args:
            home_score: Final home score
            away_score: Final away score
            spread: Home line; negative when the home team is favored

        Returns:
            Positive when the home team covered, negative when the away team
            covered, zero for a push
        """
        return (home_score - away_score) + spread

    @staticmethod
    def margin_bonus(cover_margin: float) -> int:
        """Bonus points for how far a winning pick covered"""
        for threshold, bonus in ScoringConstants.MARGIN_BONUS_TIERS:
            if cover_margin >= threshold:
                return bonus
        return 0

    @staticmethod
    def calculate_pick_result(selected_team: str, home_team: str, away_team: str,
                              home_score: int, away_score: int, spread: float,
                              is_lock: bool = False) -> PickOutcome:
        """
        Calculate a pick's result and points

        Wins score 20 plus a cover-margin bonus (doubled for lock picks),
        pushes score 10 and losses score 0.
        """
        if selected_team not in (home_team, away_team):
            raise ValueError(f"Selected team '{selected_team}' did not play in {away_team} @ {home_team}")

        margin = PickScorer.adjusted_margin(home_score, away_score, spread)
        if margin == 0:
            return PickOutcome(result=PickResult.PUSH, points=ScoringConstants.PUSH_POINTS)

        picked_home = selected_team == home_team
        covered = margin > 0 if picked_home else margin < 0
        if not covered:
            return PickOutcome(result=PickResult.LOSS, points=ScoringConstants.LOSS_POINTS)

        cover_margin = abs(margin)
        bonus = PickScorer.margin_bonus(cover_margin)
        if is_lock:
            bonus *= ScoringConstants.LOCK_BONUS_MULTIPLIER

        return PickOutcome(
            result=PickResult.WIN,
            points=ScoringConstants.WIN_POINTS + bonus,
            bonus_points=bonus,
            cover_margin=cover_margin
        )

    @staticmethod
    def score_if_final(selected_team: str, game, is_lock: bool = False) -> Optional[PickOutcome]:
        """
        Score a pick against a game row, or None if the game is not final

        Args:
            selected_team: Team the user picked
            game: Object with home_team, away_team, home_score, away_score,
                  spread and status attributes
            is_lock: Whether the pick is the user's lock
        """
        if game is None or game.status != GameStatus.COMPLETED:
            return None
        if game.home_score is None or game.away_score is None:
            return None
        return PickScorer.calculate_pick_result(
            selected_team,
            game.home_team,
            game.away_team,
            game.home_score,
            game.away_score,
            game.spread or 0,
            is_lock
        )
