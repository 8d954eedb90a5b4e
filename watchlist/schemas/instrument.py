from typing import Literal

from pydantic import BaseModel, ConfigDict


class Instrument(BaseModel):
    model_config = ConfigDict(frozen=True)

    base: str
    quote: str
    kind: Literal["spot", "other"]
    active: bool | None = None
