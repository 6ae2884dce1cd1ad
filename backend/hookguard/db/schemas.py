from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


class TenantCreate(BaseModel):
    name: str


class TenantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    token: str


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    provider: str
    idempotency_key: str
    key_source: Literal["provider", "content"]
    created_at: datetime
