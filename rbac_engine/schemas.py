"""
Role definition schemas.

Validate role documents loaded from files or other external sources
before they become Role value objects.

Example document:
    {
        "roles": [
            {"id": "viewer", "permissions": ["post.view"]},
            {"id": "editor", "permissions": ["post.edit"], "parents": ["viewer"]}
        ]
    }
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .interfaces import Role


class RoleDefinition(BaseModel):
    """One role as written in a document."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, max_length=100)
    permissions: list[str] = Field(default_factory=list)
    parents: list[str] = Field(default_factory=list)
    description: str | None = Field(default=None, max_length=500)

    @field_validator("permissions", "parents")
    @classmethod
    def no_blank_entries(cls, v: list[str]) -> list[str]:
        if any(not item.strip() for item in v):
            raise ValueError("entries must be non-empty strings")
        return v

    @model_validator(mode="after")
    def not_own_parent(self) -> "RoleDefinition":
        if self.id in self.parents:
            raise ValueError(f"Role '{self.id}' cannot inherit from itself")
        return self

    def to_role(self) -> Role:
        return Role(
            id=self.id,
            permissions=frozenset(self.permissions),
            parents=frozenset(self.parents),
            description=self.description,
        )

    @classmethod
    def from_role(cls, role: Role) -> "RoleDefinition":
        return cls(
            id=role.id,
            permissions=sorted(role.permissions),
            parents=sorted(role.parents),
            description=role.description,
        )


class RoleDocument(BaseModel):
    """A whole roles file."""

    roles: list[RoleDefinition] = Field(default_factory=list)

    @field_validator("roles")
    @classmethod
    def unique_ids(cls, v: list[RoleDefinition]) -> list[RoleDefinition]:
        seen: set[str] = set()
        for definition in v:
            if definition.id in seen:
                raise ValueError(f"Duplicate role id: '{definition.id}'")
            seen.add(definition.id)
        return v
