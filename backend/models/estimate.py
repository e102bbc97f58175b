"""Pricing estimate model."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class Estimate:
    """Payout returned by the pricing service for a device."""
    offer: Optional[Any] = None
    offer_id: Optional[str] = None
    device_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "Estimate":
        payload = payload or {}
        return cls(
            offer=payload.get("offer"),
            offer_id=payload.get("offerId"),
            device_id=payload.get("deviceId"),
            raw=dict(payload),
        )

    @property
    def has_offer(self) -> bool:
        # A zero offer means the device is not bought back
        return bool(self.offer)

    def formatted_offer(self) -> str:
        if isinstance(self.offer, (int, float)):
            return f"${self.offer:,.2f}"
        return str(self.offer)
