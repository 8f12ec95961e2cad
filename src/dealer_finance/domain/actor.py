from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    CLIENT = "client"
    SELLER = "seller"
    ADMIN = "admin"


PRIVILEGED_ROLES = frozenset({Role.SELLER, Role.ADMIN})


@dataclass(frozen=True, slots=True)
class Actor:
    """Already-authenticated caller, supplied by the auth gateway."""

    id: str
    role: Role
    email: str = ""
    name: str = ""

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES
