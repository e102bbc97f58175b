"""Kiosk location model."""
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class KioskLocation:
    """A kiosk returned by the location search service."""
    name: str
    address: str
    city: str
    state: str
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "KioskLocation":
        return cls(
            name=payload.get("Name") or "",
            address=payload.get("Address") or payload.get("Address1") or "",
            city=payload.get("City") or "",
            state=payload.get("State") or "",
            raw=dict(payload),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {"Name": self.name, "Address": self.address, "City": self.city, "State": self.state}

    def format_line(self) -> str:
        return f"- {self.name}: {self.address}, {self.city}, {self.state}"
