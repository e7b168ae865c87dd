from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Book(SQLModel, table=True):
    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    author: str
    description: Optional[str] = None
    category: str = Field(default="Self Development", index=True)

    #Image
    image_url: Optional[str] = None

    #Shop Details
    price: float
    original_price: Optional[float] = None
    in_stock: bool = True

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
