"""Admin device model - push notification endpoints for the store operator."""

from datetime import datetime

from sqlalchemy import String, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.database import Base


class AdminDevice(Base):
    __tablename__ = "admin_devices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # FCM registration token
    token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<AdminDevice {self.id}>"
