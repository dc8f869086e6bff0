"""Round pacing parameters."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RoundTiming:
    """
    Delays (in seconds) and shuffle-count range for one round.

    Each shuffle step waits ``swap_settle`` after the swap and then
    ``step_interval`` before the next step.
    """

    placing_dwell: float = 1.5
    shuffle_lead_in: float = 0.3
    step_interval: float = 0.2
    swap_settle: float = 0.3
    reveal_delay: float = 2.5
    min_shuffles: int = 3
    max_shuffles: int = 5

    def __post_init__(self) -> None:
        if self.min_shuffles < 0 or self.max_shuffles < self.min_shuffles:
            raise ValueError(
                f"Invalid shuffle range: {self.min_shuffles}-{self.max_shuffles}"
            )
        delays = (
            self.placing_dwell,
            self.shuffle_lead_in,
            self.step_interval,
            self.swap_settle,
            self.reveal_delay,
        )
        if any(d < 0 for d in delays):
            raise ValueError("Delays must be non-negative")

    @property
    def per_step_delay(self) -> float:
        """Total pause after each shuffle step."""
        return self.swap_settle + self.step_interval

    @classmethod
    def instant(cls, min_shuffles: int = 3, max_shuffles: int = 5) -> "RoundTiming":
        """Timing with every delay zeroed (tests, bots)."""
        return cls(
            placing_dwell=0,
            shuffle_lead_in=0,
            step_interval=0,
            swap_settle=0,
            reveal_delay=0,
            min_shuffles=min_shuffles,
            max_shuffles=max_shuffles,
        )
