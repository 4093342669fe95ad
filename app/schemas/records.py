"""Schemas for agent profile and login records (source field names kept as aliases)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AgentRecord(BaseModel):
    """One travel-agent profile. Immutable once loaded."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    agent_id: str = Field("", alias="AgentID")
    name: str = Field("", alias="Name")
    email: str = Field("", alias="UserName", description="Contact identifier; also usable as an alternate id.")
    company: str = Field("", alias="Comp_Name")
    nationality: str = Field("", alias="Nationality")
    created: str = Field("", alias="CreatedDate")
    last_login: str | None = Field(None, alias="LastLogin")

    @field_validator("agent_id", "name", "email", "company", "nationality", "created", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)


class LoginEvent(BaseModel):
    """One login by an agent, referenced by AgentID or by email."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    login_id: int = Field(..., alias="ID")
    agent_id: str = Field("", alias="AGENTID")
    login_date: str = Field("", alias="LOGINDATE")

    @field_validator("agent_id", "login_date", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)
