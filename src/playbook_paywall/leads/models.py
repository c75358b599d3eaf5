"""SQLAlchemy model for captured leads."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from playbook_paywall.common.models import Base, TimestampMixin, generate_uuid


class LeadCaptureModel(Base, TimestampMixin):
    __tablename__ = "lead_captures"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    source: Mapped[str] = mapped_column(String(100), default="")
    consent_given: Mapped[bool] = mapped_column(Boolean, default=False)
    target_product: Mapped[str] = mapped_column(String(50), default="ios_playbook")
