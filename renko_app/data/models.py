# Pydantic types (Bar, Brick, markers, états publiés)
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Bar(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: int            # epoch seconds (UTC)
    open: float
    high: float
    low: float
    close: float

    @model_validator(mode="after")
    def _check_range(self) -> "Bar":
        if not (self.low <= min(self.open, self.close) and max(self.open, self.close) <= self.high):
            raise ValueError(f"inconsistent OHLC at time={self.time}")
        return self


class Brick(BaseModel):
    """Brique Renko synthétique : pas de mèche, high/low = bornes du corps."""
    model_config = ConfigDict(frozen=True)

    time: int            # time de la barre qui l'a produite (peut se répéter)
    open: float
    high: float
    low: float
    close: float

    @property
    def direction(self) -> int:
        return 1 if self.close > self.open else -1


class ExtremumMarker(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: int
    price: float
    role: Literal["high", "low"]


class RenkoResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    bricks: List[Brick] = Field(default_factory=list)
    high_marker: Optional[ExtremumMarker] = None
    low_marker: Optional[ExtremumMarker] = None
    brick_size: Optional[float] = None   # None si < 2 barres


class SentimentResult(BaseModel):
    """Réponse du classifieur : seul asset_id est consommé par le coeur."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sentiment: Literal["Positive", "Neutral", "Negative"]
    summary: str
    icon: str
    asset_id: str = Field(alias="assetId")


class RefreshPhase(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class ChartState(BaseModel):
    """Ce que la couche de rendu lit. Remplacé en bloc à chaque refresh."""
    model_config = ConfigDict(frozen=True)

    phase: RefreshPhase = RefreshPhase.IDLE
    asset_id: Optional[str] = None
    requested_name: Optional[str] = None
    bars: List[Bar] = Field(default_factory=list)
    result: RenkoResult = Field(default_factory=RenkoResult)
    last_refreshed_at: Optional[datetime] = None
    message: Optional[str] = None

    @property
    def bricks(self) -> List[Brick]:
        return self.result.bricks

    @property
    def high_marker(self) -> Optional[ExtremumMarker]:
        return self.result.high_marker

    @property
    def low_marker(self) -> Optional[ExtremumMarker]:
        return self.result.low_marker
