from pydantic import BaseModel, Field
from typing import List, Optional


class ComboCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    book_ids: List[int] = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    original_price: Optional[float] = Field(None, gt=0)
    image_url: Optional[str] = None
    is_active: bool = True


class ComboUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    book_ids: Optional[List[int]] = Field(None, min_length=1)
    price: Optional[float] = Field(None, gt=0)
    original_price: Optional[float] = Field(None, gt=0)
    image_url: Optional[str] = None
    is_active: Optional[bool] = None
