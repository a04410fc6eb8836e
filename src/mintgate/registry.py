"""Token registry — ownership records for issued items.

The registry is an external collaborator of the issuance engine. The
engine only ever calls mint_next, count_owned_by and ids_owned_by. Any
backend satisfying the TokenRegistry protocol can be plugged in; the
in-memory registry here is what the service and CLI use, persisted
through the state store.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class TokenRegistry(Protocol):
    """What the issuance engine needs from an item registry."""

    def mint_next(self, recipient: str) -> int:
        """Assign the next sequential id to recipient and return it."""
        ...

    def count_owned_by(self, account: str) -> int:
        ...

    def ids_owned_by(self, account: str) -> List[int]:
        ...

    def owner_of(self, token_id: int) -> Optional[str]:
        ...

    @property
    def total_minted(self) -> int:
        ...


class InMemoryTokenRegistry:
    """Sequential-id registry. Ids start at 1 and are never reused."""

    def __init__(self, owners: Optional[List[str]] = None) -> None:
        # owners[i] is the owner of token id i + 1
        self._owners: List[str] = list(owners or [])
        self._by_owner: Dict[str, List[int]] = {}
        for index, owner in enumerate(self._owners):
            self._by_owner.setdefault(owner, []).append(index + 1)

    def mint_next(self, recipient: str) -> int:
        self._owners.append(recipient)
        token_id = len(self._owners)
        self._by_owner.setdefault(recipient, []).append(token_id)
        return token_id

    def count_owned_by(self, account: str) -> int:
        return len(self._by_owner.get(account, []))

    def ids_owned_by(self, account: str) -> List[int]:
        return list(self._by_owner.get(account, []))

    def owner_of(self, token_id: int) -> Optional[str]:
        if 1 <= token_id <= len(self._owners):
            return self._owners[token_id - 1]
        return None

    @property
    def total_minted(self) -> int:
        return len(self._owners)

    def snapshot(self) -> List[str]:
        return list(self._owners)
