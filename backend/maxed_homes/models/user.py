"""User model — the authenticated caller behind every booking operation."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from maxed_homes.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

USER_ROLES = ("guest", "host", "admin")


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A guest, host or admin account.

    Accounts are provisioned by the identity provider; this table only mirrors
    what the authorization layer needs.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    role: Mapped[str] = mapped_column(String(50), default="guest", nullable=False)  # guest, host, admin

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"
