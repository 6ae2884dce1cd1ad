from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, StringConstraints


class ExtractionResult(BaseModel):
    """Outcome of provider identifier extraction.

    ``identifier`` is None when no safe identifier could be derived.
    """

    model_config = ConfigDict(frozen=True)

    identifier: Annotated[str, StringConstraints(min_length=1)] | None = None

    @property
    def available(self) -> bool:
        return self.identifier is not None

    @classmethod
    def unavailable(cls) -> "ExtractionResult":
        return cls()

    @classmethod
    def of(cls, identifier: str | None) -> "ExtractionResult":
        if not identifier:
            return cls()
        return cls(identifier=identifier)


class DedupKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    source: Literal["provider", "content"]
