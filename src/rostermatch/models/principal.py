"""Authenticated caller identity supplied by the auth collaborator."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Role(str, Enum):
    PLAYER = "player"
    AGENT = "agent"
    CLUB = "club"
    SUPERADMIN = "superadmin"


class Principal(BaseModel):
    """Authenticated actor.

    For players and agents ``id`` is the player/agent id their resources are
    keyed on.
    """

    id: str = Field(..., min_length=1)
    role: Role

    model_config = ConfigDict(frozen=True)

    @classmethod
    def parse(cls, value: str) -> "Principal":
        """Build a principal from ``ROLE:ID`` (e.g. ``agent:a1``)."""

        if ":" not in value:
            raise ValueError(f"Principal must look like 'ROLE:ID', got {value!r}")
        role, principal_id = value.split(":", 1)
        return cls(id=principal_id.strip(), role=Role(role.strip().lower()))
