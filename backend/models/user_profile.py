from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column
from database import Model




class UserProfileOrm(Model):
    __tablename__ = "user_profiles"
    
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(nullable=False, unique=True)
    avatar_url: Mapped[str] = mapped_column(nullable=True)
    phone: Mapped[str] = mapped_column(nullable=True)
    bio: Mapped[str] = mapped_column(nullable=True)
    location: Mapped[str] = mapped_column(nullable=True)
    # organization only
    mission: Mapped[str] = mapped_column(nullable=True)
    vision: Mapped[str] = mapped_column(nullable=True)
    history: Mapped[str] = mapped_column(nullable=True)
    gallery_urls: Mapped[list] = mapped_column(JSON, nullable=True)
    stats_events_held: Mapped[int] = mapped_column(default=0)
    stats_volunteers_impacted: Mapped[int] = mapped_column(default=0)
    stats_hours_contributed: Mapped[int] = mapped_column(default=0)
