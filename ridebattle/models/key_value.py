from datetime import datetime

from sqlalchemy import DateTime, LargeBinary, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ridebattle.models.base import Base


class KeyValueEntry(Base):
    __tablename__ = "key_value_entries"

    key: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    value: Mapped[bytes] = mapped_column(LargeBinary)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
