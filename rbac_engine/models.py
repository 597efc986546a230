"""
ORM models for the database role store.

Tables:
- roles: Role definitions
- permissions: Permission identifiers (e.g., "post.edit")
- role_permissions: Many-to-many between roles and permissions
- role_parents: Parent links forming the role hierarchy

Usage:
    editor = RoleRecord(id="editor")
    editor.permissions.append(PermissionRecord(name="post.edit"))
    editor.parent_links.append(RoleParent(parent_id="viewer"))
"""

from datetime import datetime
from sqlalchemy import String, ForeignKey, DateTime, Table, Column, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .interfaces import Role


class Base(DeclarativeBase):
    """Base class for all models."""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps (UTC)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# Many-to-many relationship between Role and Permission
role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", String(100), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", String(200), ForeignKey("permissions.name", ondelete="CASCADE"), primary_key=True),
)


class RoleRecord(Base, TimestampMixin):
    """
    Role definition.

    Permissions are shared rows; parent links are owned by the child role.
    """

    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    permissions: Mapped[list["PermissionRecord"]] = relationship(
        "PermissionRecord",
        secondary=role_permissions,
        lazy="selectin",
    )
    parent_links: Mapped[list["RoleParent"]] = relationship(
        "RoleParent",
        back_populates="role",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_role(self) -> Role:
        return Role(
            id=self.id,
            permissions=frozenset(p.name for p in self.permissions),
            parents=frozenset(link.parent_id for link in self.parent_links),
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"<RoleRecord {self.id}>"


class PermissionRecord(Base, TimestampMixin):
    """Permission identifier, optionally namespaced ("post.delete")."""

    __tablename__ = "permissions"

    name: Mapped[str] = mapped_column(String(200), primary_key=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<PermissionRecord {self.name}>"


class RoleParent(Base):
    """
    Parent link in the role hierarchy.

    parent_id is not a foreign key: roles may be saved before their parents,
    and dangling links are reported by RoleResolver.validate().
    """

    __tablename__ = "role_parents"

    role_id: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    parent_id: Mapped[str] = mapped_column(String(100), primary_key=True, index=True)

    role: Mapped["RoleRecord"] = relationship("RoleRecord", back_populates="parent_links")

    def __repr__(self) -> str:
        return f"<RoleParent {self.role_id} -> {self.parent_id}>"
