from datetime import datetime, timezone
from sqlalchemy import DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from database import Model




class ApplicationOrm(Model):
    __tablename__ = "applications"
    __table_args__ = (
        # one row per pair; a cancelled row is reactivated in place by reapply
        UniqueConstraint("event_id", "volunteer_id", name="uq_application_event_volunteer"),
    )
    
    id: Mapped[int] = mapped_column(primary_key=True)
    volunteer_id: Mapped[int] = mapped_column(nullable=False, index=True)
    event_id: Mapped[int] = mapped_column(nullable=False, index=True)
    status: Mapped[str] = mapped_column(nullable=False, default="pending")  # pending, approved, rejected, cancelled
    message: Mapped[str] = mapped_column(nullable=True)
    attachment_path: Mapped[str] = mapped_column(nullable=True)
    attachment_name: Mapped[str] = mapped_column(nullable=True)
    attachment_mime_type: Mapped[str] = mapped_column(nullable=True)
    attachment_size_bytes: Mapped[int] = mapped_column(nullable=True)
    applied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
