"""
Operator Models

Internal staff accounts stored in DynamoDB.
PK: OPERATOR#<operator_id>
SK: PROFILE
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OperatorRole(str, Enum):
    """Operator roles, lowest to highest."""

    INTERN = "intern"
    """Entry-level screener."""

    STAFF = "staff"
    """Senior screener."""

    UNIT_MANAGER = "unit_manager"
    """Runs final interviews assigned to them."""

    ADMIN = "admin"


class Operator(BaseModel):
    """An internal actor whose role gates lifecycle transitions."""

    model_config = ConfigDict(frozen=True)

    operator_id: str = Field(..., description="Operator identifier")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Work email address")
    role: OperatorRole = Field(default=OperatorRole.INTERN, description="Operator role")
    supervisor_id: str | None = Field(default=None, description="Direct manager's operator id")
    created_at: int | None = Field(default=None, description="Record creation timestamp")

    @property
    def pk(self) -> str:
        return f"OPERATOR#{self.operator_id}"

    @property
    def sk(self) -> str:
        return "PROFILE"

    @property
    def is_unit_manager(self) -> bool:
        return self.role is OperatorRole.UNIT_MANAGER

    def to_dynamodb(self) -> dict[str, Any]:
        """Convert to DynamoDB item."""
        item: dict[str, Any] = {
            "PK": self.pk,
            "SK": self.sk,
            "GSI1PK": f"ROLE#{self.role.value}",
            "operator_id": self.operator_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
        }
        if self.supervisor_id:
            item["supervisor_id"] = self.supervisor_id
        if self.created_at:
            item["created_at"] = self.created_at
        return item

    @classmethod
    def from_dynamodb(cls, item: dict[str, Any]) -> "Operator":
        """Parse from DynamoDB item."""
        created_at = item.get("created_at")
        return cls(
            operator_id=item.get("operator_id") or item.get("PK", "").replace("OPERATOR#", ""),
            name=item.get("name", ""),
            email=item.get("email", ""),
            role=OperatorRole(item.get("role", OperatorRole.INTERN.value)),
            supervisor_id=item.get("supervisor_id"),
            created_at=int(created_at) if created_at is not None else None,
        )
