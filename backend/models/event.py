from datetime import datetime, timezone
from sqlalchemy import DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from database import Model




class EventOrm(Model):
    __tablename__ = "events"
    
    id: Mapped[int] = mapped_column(primary_key=True)
    organization_id: Mapped[int] = mapped_column(nullable=False, index=True)
    title: Mapped[str] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(nullable=False, index=True)
    address: Mapped[str] = mapped_column(nullable=False)
    lat: Mapped[float] = mapped_column(nullable=True)
    lng: Mapped[float] = mapped_column(nullable=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    duration: Mapped[str] = mapped_column(nullable=True)  # free text: "2h30", "1:45", "90m"
    volunteers_needed: Mapped[int] = mapped_column(default=0)
    volunteers_registered: Mapped[int] = mapped_column(default=0)
    status: Mapped[str] = mapped_column(nullable=False, default="open", index=True)  # open, closed, completed
    image_url: Mapped[str] = mapped_column(nullable=True)
    post_event_summary: Mapped[str] = mapped_column(nullable=True)
    post_event_gallery_urls: Mapped[list] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
