# src/memory/base_memory_store.py
"""Abstract memory store interface.

Memory is advisory: callers treat every failure here as non-fatal.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from speechwright.core.models import Identity
from speechwright.memory.models import MemoryProfile, TraitDelta
from speechwright.memory.traits import merge_profile


class BaseMemoryStore(ABC):
    """Unified interface for trait profile backends."""

    @abstractmethod
    async def load_traits(self, identity: Identity) -> MemoryProfile | None:
        """Return the stored profile, or None when there is none."""

    @abstractmethod
    async def _write_profile(self, profile: MemoryProfile) -> None:
        """Persist a full profile (insert or replace)."""

    async def merge_traits(self, identity: Identity, delta: TraitDelta) -> MemoryProfile | None:
        """Merge ``delta`` into the identity's profile.

        Returns the merged profile, or None when nothing was written.
        """
        key = identity.key
        if key is None or delta.is_empty:
            return None
        existing = await self.load_traits(identity)
        merged = merge_profile(existing, key, delta)
        await self._write_profile(merged)
        return merged

    def close(self) -> None:
        """Release backend resources. No-op for file backends."""
