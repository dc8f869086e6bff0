"""Cup and CupTable classes - identity-tracked cups over fixed slots."""

from dataclasses import dataclass
from typing import Iterator

CUP_COUNT = 3

SLOT_NAMES = ("left", "center", "right")


@dataclass(frozen=True, slots=True)
class Cup:
    """
    A cup with an immutable identity and the slot it currently occupies.

    Cups are immutable values; a swap replaces the two cups involved with
    copies carrying their new slots.
    """

    id: int
    slot: int

    def __str__(self) -> str:
        return f"cup {self.id} @ {SLOT_NAMES[self.slot]}"

    def moved_to(self, slot: int) -> "Cup":
        """Return this cup relocated to another slot."""
        return Cup(id=self.id, slot=slot)


class CupTable:
    """
    The row of cups, indexed by slot.

    The slot -> cup mapping is always a bijection over ``range(CUP_COUNT)``.
    """

    def __init__(self, cups: list[Cup] | None = None) -> None:
        """
        Initialize the table.

        Args:
            cups: Cups ordered by slot (defaults to cup N in slot N)
        """
        if cups is None:
            cups = [Cup(id=i, slot=i) for i in range(CUP_COUNT)]
        self._cups = list(cups)
        if not self.is_bijection():
            raise ValueError(f"Invalid cup layout: {self._cups!r}")

    def __len__(self) -> int:
        return len(self._cups)

    def __iter__(self) -> Iterator[Cup]:
        return iter(self._cups)

    def __getitem__(self, slot: int) -> Cup:
        if not 0 <= slot < len(self._cups):
            raise ValueError(f"Slot must be between 0 and {len(self._cups) - 1}, got {slot}")
        return self._cups[slot]

    def __repr__(self) -> str:
        return f"CupTable({[c.id for c in self._cups]})"

    @property
    def cups(self) -> list[Cup]:
        """Return a copy of the cups ordered by slot."""
        return self._cups.copy()

    @property
    def identities(self) -> list[int]:
        """Return cup identities ordered by slot."""
        return [c.id for c in self._cups]

    def slot_of(self, cup_id: int) -> int:
        """Find the slot currently holding a cup identity."""
        for slot, cup in enumerate(self._cups):
            if cup.id == cup_id:
                return slot
        raise ValueError(f"No cup with id {cup_id}")

    def swap(self, slot_a: int, slot_b: int) -> tuple[Cup, Cup]:
        """
        Exchange the cups occupying two distinct slots.

        Both entries are replaced in a single assignment so no reader ever
        sees a half-updated layout.

        Returns:
            The two cups after the swap, as (now at slot_a, now at slot_b)
        """
        if slot_a == slot_b:
            raise ValueError(f"Cannot swap slot {slot_a} with itself")
        cup_a, cup_b = self[slot_a], self[slot_b]
        self._cups[slot_a], self._cups[slot_b] = cup_b.moved_to(slot_a), cup_a.moved_to(slot_b)
        return self._cups[slot_a], self._cups[slot_b]

    def is_bijection(self) -> bool:
        """Check that every slot holds exactly one cup and no identity repeats."""
        if len(self._cups) != CUP_COUNT:
            return False
        slots_ok = all(cup.slot == slot for slot, cup in enumerate(self._cups))
        return slots_ok and sorted(self.identities) == list(range(CUP_COUNT))
