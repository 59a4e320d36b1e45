"""Identity resolution: device identifiers → employees (many-to-one)."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Optional

from jornadas.identity.schemas import IdentifierLink, IdentityConflict
from jornadas.sessions.schemas import RawPunch

logger = logging.getLogger(__name__)


class IdentityMap:
    """Read-only view of the employee ↔ identifier associations.

    An identifier claimed by two employees at once cannot be attributed
    safely; it is kept out of the lookup and exposed in ``conflicts``.
    """

    def __init__(
        self,
        by_identifier: dict[str, int],
        conflicts: Optional[list[IdentityConflict]] = None,
    ) -> None:
        self._by_identifier = dict(by_identifier)
        self._by_employee: dict[int, set[str]] = defaultdict(set)
        for identifier_id, employee_id in self._by_identifier.items():
            self._by_employee[employee_id].add(identifier_id)
        self.conflicts: list[IdentityConflict] = list(conflicts or [])

    @classmethod
    def from_links(cls, links: Iterable[IdentifierLink]) -> IdentityMap:
        claims: dict[str, set[int]] = defaultdict(set)
        for link in links:
            claims[link.identifier_id].add(link.employee_id)

        resolved: dict[str, int] = {}
        conflicts: list[IdentityConflict] = []
        for identifier_id in sorted(claims):
            owners = claims[identifier_id]
            if len(owners) == 1:
                resolved[identifier_id] = next(iter(owners))
            else:
                conflicts.append(
                    IdentityConflict(
                        identifier_id=identifier_id,
                        employee_ids=tuple(sorted(owners)),
                    )
                )
                logger.warning(
                    "Identifier %s is claimed by employees %s; its punches are skipped",
                    identifier_id, sorted(owners),
                )
        return cls(resolved, conflicts)

    def employee_for(self, identifier_id: str) -> Optional[int]:
        return self._by_identifier.get(identifier_id)

    def identifiers_for(self, employee_id: int) -> frozenset[str]:
        return frozenset(self._by_employee.get(employee_id, ()))

    @property
    def employee_ids(self) -> list[int]:
        return sorted(self._by_employee)

    def group_punches(
        self,
        punches: Iterable[RawPunch],
    ) -> tuple[dict[int, list[RawPunch]], int]:
        """Bucket punches per employee.

        Returns ``(punches_by_employee, unresolved_count)``; punches from
        unknown or conflicting identifiers are counted, not attributed.
        """
        grouped: dict[int, list[RawPunch]] = defaultdict(list)
        unresolved = 0
        for punch in punches:
            employee_id = self.employee_for(punch.identifier_id)
            if employee_id is None:
                unresolved += 1
                continue
            grouped[employee_id].append(punch)
        return dict(grouped), unresolved

    def __len__(self) -> int:
        return len(self._by_identifier)
