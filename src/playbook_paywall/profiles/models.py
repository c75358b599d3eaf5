"""SQLAlchemy model for user profiles."""

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from playbook_paywall.common.models import Base, TimestampMixin


class ProfileModel(Base, TimestampMixin):
    __tablename__ = "profiles"

    # Matches the identity provider's user id; not generated here.
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    entitlements: Mapped[list | None] = mapped_column(JSON, default=list, nullable=True)
    stripe_customer_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
