from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime


class Combo(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None

    # ids of the catalog books bundled in this combo
    book_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    price: float
    original_price: Optional[float] = None
    image_url: Optional[str] = None
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
