from sqlmodel import SQLModel, Field
from sqlalchemy import Column, Text, UniqueConstraint
from typing import Optional
from datetime import datetime


class ClientStorage(SQLModel, table=True):
    """Per-session key/value storage (the server side of a browser's local storage)."""

    __tablename__ = "client_storage"
    __table_args__ = (UniqueConstraint("session_id", "key"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: str = Field(index=True)
    key: str
    value: str = Field(default="", sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(default_factory=datetime.utcnow)
