"""
leadtrack.schemas
=================

Pydantic models for the backend's camelCase JSON.

Everything received from the network goes through one of these before it
becomes a :pymod:`leadtrack.models` dataclass; nothing from the wire is
trusted as already valid.  :pyfunc:`to_wire` does the opposite for the
normalized updates produced by :pymod:`leadtrack.lifecycle`.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Comment, Company, ContactDetails, Role, Status, User

logger = logging.getLogger(__name__)

# Mapping of backend role values to leadtrack Role enum
ROLE_MAP = {
    "ADMIN": Role.ADMIN,
    "INSTRUCTOR": Role.INSTRUCTOR,
    "STUDENT": Role.STANDARD,
    "STANDARD": Role.STANDARD,
    "USER": Role.STANDARD,
}

# Default role when no mapping exists
DEFAULT_ROLE = Role.STANDARD

# model field name → wire name, for outgoing payloads
WIRE_NAMES = {
    "name": "name",
    "contact": "contactDetails",
    "assigned_to": "assignedTo",
    "assigned_by": "assignedBy",
    "contact_date": "contactDate",
    "meeting_date": "meetingDate",
    "status": "status",
    "escalated_to": "escalatedTo",
    "notes": "notes",
}


def _blank_to_none(value: Any) -> Any:
    if value == "":
        return None
    # "2024-01-15T00:00:00Z" style values are accepted for date fields
    if isinstance(value, str) and len(value) > 10 and value[10] in "T ":
        return value[:10]
    return value


def map_role(value: str, user_id: int) -> Role:
    """Backend role name to `Role`; unknown names fall back to DEFAULT_ROLE."""
    role = ROLE_MAP.get(value.strip().upper())
    if role is None:
        logger.warning(f"Unknown role {value!r} for user {user_id}, using {DEFAULT_ROLE}")
        role = DEFAULT_ROLE
    return role


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # offset timestamps become naive UTC, plain ones are taken as UTC already
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ContactDetailsSchema(WireModel):
    person: str = Field("", alias="contactPerson")
    email: str = ""
    phone: str = ""
    address: str = ""

    @field_validator("person", "email", "phone", "address", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    def to_model(self) -> ContactDetails:
        return ContactDetails(person=self.person, email=self.email, phone=self.phone, address=self.address)


class UserSchema(WireModel):
    id: int
    first_name: str = Field("", alias="firstname")
    last_name: str = Field("", alias="surname")
    email: str = ""
    role: str = DEFAULT_ROLE.value
    contact_number: str = Field("", alias="contactNumber")

    @field_validator("first_name", "last_name", "email", "contact_number", "role", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    def to_model(self) -> User:
        return User(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            role=map_role(self.role, self.id),
            contact_number=self.contact_number,
        )


class CommentSchema(WireModel):
    id: int
    company_id: int = Field(alias="companyId")
    user_id: int = Field(alias="userId")
    content: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _to_naive_utc(cls, v):
        return _naive_utc(v)

    def to_model(self) -> Comment:
        return Comment(
            id=self.id,
            company_id=self.company_id,
            user_id=self.user_id,
            content=self.content,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class CompanySchema(WireModel):
    id: int
    name: str
    contact: ContactDetailsSchema = Field(default_factory=ContactDetailsSchema, alias="contactDetails")
    assigned_to: int = Field(alias="assignedTo")
    assigned_by: int = Field(alias="assignedBy")
    contact_date: Optional[date] = Field(None, alias="contactDate")
    meeting_date: Optional[date] = Field(None, alias="meetingDate")
    status: Status = Status.PENDING
    escalated_to: Optional[int] = Field(None, alias="escalatedTo")
    notes: Optional[str] = ""
    comments: List[CommentSchema] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    @field_validator("contact_date", "meeting_date", mode="before")
    @classmethod
    def _parse_date(cls, v):
        return _blank_to_none(v)

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("contact", mode="before")
    @classmethod
    def _contact_default(cls, v):
        return {} if v is None else v

    def to_model(self) -> Company:
        escalated_to = self.escalated_to
        if self.status is not Status.ESCALATED and escalated_to is not None:
            logger.warning(
                f"Company {self.id} is {self.status} but points at user {escalated_to}; dropping pointer")
            escalated_to = None
        elif self.status is Status.ESCALATED and escalated_to is None:
            logger.warning(f"Company {self.id} is ESCALATED without a target")
        return Company(
            id=self.id,
            name=self.name,
            contact=self.contact.to_model(),
            assigned_to=self.assigned_to,
            assigned_by=self.assigned_by,
            contact_date=self.contact_date,
            meeting_date=self.meeting_date,
            status=self.status,
            escalated_to=escalated_to,
            notes=self.notes or "",
            comments=tuple(c.to_model() for c in self.comments),
            created_at=self.created_at,
        )


class LoginUserSchema(WireModel):
    id: int
    first_name: str = Field("", alias="firstname")
    email: str = ""
    role: str = DEFAULT_ROLE.value
    token: str

    @field_validator("first_name", "email", "role", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    def to_model(self) -> User:
        # the login answer carries no surname or contact number
        return User(id=self.id, first_name=self.first_name, last_name="", email=self.email,
                    role=map_role(self.role, self.id))


class LoginResponseSchema(WireModel):
    message: str = ""
    user: LoginUserSchema


# ---------------------------------------------------------------------------
# Outgoing payloads
# ---------------------------------------------------------------------------
def _wire_value(value: Any) -> Any:
    if isinstance(value, ContactDetails):
        return {
            "contactPerson": value.person,
            "email": value.email,
            "phone": value.phone,
            "address": value.address,
        }
    if isinstance(value, Status):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def to_wire(update: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a normalized update (model field names) into backend JSON."""
    return {WIRE_NAMES[key]: _wire_value(value) for key, value in update.items()}
