"""User model for team members referenced across projects, tasks and meetings."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from src.models.base import BaseEntity, Department, UTCDateTime, utc_now


class UserRole(str, Enum):
    """Role of a user within the organization."""

    MEMBER = "member"
    MANAGER = "manager"
    ADMIN = "admin"


class ContactInfo(BaseModel):
    """Optional contact handles for a user."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str | None = None
    discord: str | None = None
    linkedin: str | None = None
    phone: str | None = None
    github: str | None = None


class User(BaseEntity):
    """A team member.

    Users are referenced by ownership and authorship fields elsewhere
    (project members, task assignee, meeting host, action author) and are
    never mutated by the tracking core. The password hash is stored here but
    is excluded from every read projection.
    """

    name: str = Field(min_length=1, max_length=200, description="Display name")
    email: EmailStr = Field(description="Login email, stored lowercase")
    password_hash: str | None = Field(
        default=None,
        description="Credential hash produced by the auth layer",
    )
    role: UserRole = Field(default=UserRole.MEMBER)
    department: Department = Field(default=Department.ENGINEERING)
    contact: ContactInfo = Field(default_factory=ContactInfo)
    skills: list[str] = Field(default_factory=list)
    bio: str = Field(default="")
    teams: list[str] = Field(default_factory=list)
    join_date: UTCDateTime = Field(default_factory=utc_now)
    avatar: str = Field(default="", description="Avatar text or URL")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @model_validator(mode="after")
    def default_avatar(self) -> "User":
        """Derive initials from the name when no avatar is set."""
        if not self.avatar:
            initials = "".join(part[0] for part in self.name.split() if part)
            self.avatar = initials.upper()
        return self
