from __future__ import annotations

from typing import Iterable, Mapping, Optional, Protocol, Sequence

from .model import PersonSnapshot


class PersonRepository(Protocol):
    """Repository interface for members and dependants.

    Note (DIP): services depend on this interface, never on a concrete DB.
    """

    def get_by_id(self, person_id: int) -> Optional[PersonSnapshot]:
        raise NotImplementedError

    def get_many(self, person_ids: Iterable[int]) -> Mapping[int, PersonSnapshot]:
        """Snapshots keyed by id; unknown ids are simply absent."""

        raise NotImplementedError

    def get_by_membership_id(self, canonical_id: str) -> Optional[PersonSnapshot]:
        raise NotImplementedError

    def list_members(self, *, group: Optional[str] = None) -> Sequence[PersonSnapshot]:
        raise NotImplementedError

    def list_dependants(self, member_id: int) -> Sequence[PersonSnapshot]:
        raise NotImplementedError

    def set_membership_id(self, person_id: int, canonical_id: str) -> bool:
        """Store ``canonical_id`` for the member.

        Returns False when another member already holds it (unique constraint).
        """

        raise NotImplementedError
