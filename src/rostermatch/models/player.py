"""Canonical player and agency records shared by the directory and workflow layers."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class ContractStatus(str, Enum):
    FREE = "free"
    LOANED = "loaned"
    CONTRACTED = "contracted"


class PositionCategory(str, Enum):
    """Canonical position buckets used for search, independent of label spelling."""

    GOALKEEPER = "goalkeeper"
    DEFENDER = "defender"
    MIDFIELDER = "midfielder"
    FORWARD = "forward"


class PlayerRecord(BaseModel):
    """Player profile as consumed by directory queries and roster ownership.

    ``birth_date`` keeps the submitted ISO string; a value that cannot be parsed
    only makes the player age-unknown, it does not reject the record.
    """

    player_id: str = Field(..., min_length=1)
    name: str = ""
    owner_agent_id: Optional[str] = None
    positions: List[str] = Field(default_factory=list)
    birth_date: Optional[str] = None
    contract_status: ContractStatus = ContractStatus.FREE
    nationality: Optional[str] = None
    passport: Optional[str] = None
    marketplace_visible: bool = True

    model_config = ConfigDict(frozen=True)

    @field_validator("birth_date", mode="before")
    @classmethod
    def _coerce_birth_date(cls, value):
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("owner_agent_id", mode="before")
    @classmethod
    def _blank_owner_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class AgentRecord(BaseModel):
    """Agency profile; ``slug`` is its public identifier."""

    agent_id: str = Field(..., min_length=1)
    agency_name: str
    slug: str = Field(..., min_length=1)
    public_listing: bool = False

    model_config = ConfigDict(frozen=True)
