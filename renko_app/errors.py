"""
Exceptions de renko_app.

Hiérarchie :
- RenkoAppError (base)
  - InsufficientData : moins de 2 barres, l'ATR ne peut pas être calculé
  - InvalidBrickSize : taille de brique <= 0 (ou non finie)
  - UpstreamUnavailable : la source de marché a échoué / réponse invalide
  - NoMarketKey : la classification n'a pas trouvé d'identifiant de marché
  - ClassificationError : l'appel LLM a échoué ou sa réponse est invalide
"""

from __future__ import annotations

from typing import Any, Optional


class RenkoAppError(Exception):
    """Base exception for renko_app."""

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None) -> None:
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        msg = super().__str__()
        if self.details:
            return f"{msg} [details={self.details}]"
        return msg


class InsufficientData(RenkoAppError):
    """Raised when fewer than two bars reach the volatility estimator."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"At least 2 bars are required, got {count}", details={"count": count})


class InvalidBrickSize(RenkoAppError):
    """Raised when a non-positive brick size reaches the converter."""

    def __init__(self, size: float) -> None:
        self.size = size
        super().__init__(f"Brick size must be a positive number, got {size!r}")


class UpstreamUnavailable(RenkoAppError):
    """Raised when the market-data source fails or returns an unusable body."""

    def __init__(
        self,
        message: str,
        *,
        asset_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.asset_id = asset_id
        self.status_code = status_code
        details: dict[str, Any] = {}
        if asset_id:
            details["asset_id"] = asset_id
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details=details)


class NoMarketKey(RenkoAppError):
    """Classification returned the "not found" sentinel instead of an asset id."""

    def __init__(self, requested_name: str) -> None:
        self.requested_name = requested_name
        super().__init__(f"No market data key available for {requested_name!r}")


class ClassificationError(RenkoAppError):
    """Raised when the sentiment classification call fails."""
