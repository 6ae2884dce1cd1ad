from typing import Literal

from pydantic import BaseModel, Field


class IngestResponse(BaseModel):
    status: Literal["received", "duplicate"]
    idempotency_key: str = Field(..., description="Key the delivery was deduplicated on")
    key_source: Literal["provider", "content"]
