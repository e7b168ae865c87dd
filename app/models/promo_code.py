from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class PromoCode(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True, unique=True)  # stored uppercase
    discount: float  # fraction in (0, 1]
    label: Optional[str] = None
    active: bool = True
    expires_at: Optional[datetime] = None
    usage_limit: Optional[int] = None
    times_used: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
