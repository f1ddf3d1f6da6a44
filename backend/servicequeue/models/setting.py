from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Boolean, DateTime, text
from .authz import Base


class Setting(Base):
    __tablename__ = 'settings'
    TYPE_INT = 'int'
    TYPE_STRING = 'string'
    TYPE_BOOL = 'bool'
    TYPE_FLOAT = 'float'
    ALL_TYPES = (TYPE_INT, TYPE_STRING, TYPE_BOOL, TYPE_FLOAT)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    value: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default='')
    category: Mapped[str] = mapped_column(String(50), nullable=False, default='general', index=True)
    is_editable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))
