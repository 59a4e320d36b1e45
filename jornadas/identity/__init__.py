"""Identity module — device identifiers resolved to employees."""

from jornadas.identity.service import IdentityMap

__all__ = ["IdentityMap"]
