"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - The counter is reached only through CounterRepository (no ambient global state)
    - Each method is one atomic storage operation

Design Decisions:
    - Protocol over ABC: structural subtyping, lets tests pass a plain in-memory fake
      (ADR: ExMA anti-pattern)
    - compare_and_swap over "save": a write only lands if the row still holds what
      the caller read, so a lost update is detected instead of silently overwritten
"""

from typing import Protocol

from app.core.case_numbers import CounterState


class CounterRepository(Protocol):
    """Contract for the single counter record — implemented by shell."""

    async def load(self) -> CounterState | None:
        """Return the stored state, or None if nothing was ever stored."""
        ...

    async def compare_and_swap(
        self, expected: CounterState | None, new: CounterState,
    ) -> bool:
        """Store `new` only if the record still equals `expected`.

        `expected=None` means "insert only if absent". Returns False when the
        record changed underneath the caller; nothing is written in that case.
        """
        ...

    async def overwrite(self, new: CounterState) -> None:
        """Unconditionally store `new` (creating the record if absent)."""
        ...
