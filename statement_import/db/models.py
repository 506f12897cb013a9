from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Account(Base):
    """A named destination account bound to a registry format.

    ``institution_code``/``account_type_code`` select the built-in format;
    ``custom_format_config`` holds a JSON ``FormatConfig`` saved from a user
    column mapping and takes precedence when set.
    """

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    institution_code: Mapped[str] = mapped_column(String, nullable=False)
    account_type_code: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )
    custom_format_config: Mapped[str | None] = mapped_column(Text, nullable=True)
