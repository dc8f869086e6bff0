"""Score tracking across rounds of a session."""

from dataclasses import dataclass


@dataclass
class ScoreTracker:
    """
    Cumulative results for a play session.

    Fed by the engine's per-round result; the engine itself never reads it.
    """

    wins: int = 0
    games_played: int = 0
    current_streak: int = 0
    best_streak: int = 0

    def record(self, won: bool) -> None:
        """Record the outcome of one round."""
        self.games_played += 1
        if won:
            self.wins += 1
            self.current_streak += 1
        else:
            self.current_streak = 0
        self.best_streak = max(self.best_streak, self.current_streak)

    def reset(self) -> None:
        """Clear all statistics."""
        self.wins = 0
        self.games_played = 0
        self.current_streak = 0
        self.best_streak = 0

    @property
    def losses(self) -> int:
        return self.games_played - self.wins

    @property
    def win_percentage(self) -> int:
        """Win rate as a whole percentage."""
        if self.games_played == 0:
            return 0
        # Half-up rounding, not banker's rounding
        return int(self.wins * 100 / self.games_played + 0.5)

    @property
    def streak_rating(self) -> str:
        """Label for the current streak."""
        streak = self.current_streak
        if streak == 0:
            return "cold"
        if streak < 3:
            return "warm"
        if streak < 5:
            return "hot"
        if streak < 8:
            return "blazing"
        return "legendary"

    @property
    def win_rate_rating(self) -> str:
        """Label for the win percentage."""
        pct = self.win_percentage
        if pct == 0:
            return "unrated"
        if pct < 30:
            return "unlucky"
        if pct < 50:
            return "decent"
        if pct < 70:
            return "sharp"
        if pct < 90:
            return "expert"
        return "master"

    def to_dict(self) -> dict[str, int]:
        """Serialize for session storage."""
        return {
            "wins": self.wins,
            "games_played": self.games_played,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
        }

    @classmethod
    def from_dict(cls, data: dict[str, int]) -> "ScoreTracker":
        """Restore from session storage."""
        return cls(
            wins=data.get("wins", 0),
            games_played=data.get("games_played", 0),
            current_streak=data.get("current_streak", 0),
            best_streak=data.get("best_streak", 0),
        )
