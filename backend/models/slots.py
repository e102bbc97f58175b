"""Device identification slot models."""
from dataclasses import dataclass, fields
from typing import Dict, List, Optional


@dataclass
class SlotSet:
    """
    Partial or complete identification of a user's device.

    Attributes:
        brand: Canonical brand name (e.g. "Apple")
        model: Model name (e.g. "Iphone 13Pro")
        series: Series name, mirrors the model
        storage: Storage option (e.g. "128GB")
        carrier: Carrier name (e.g. "Verizon" or "Unlocked")
    """
    brand: Optional[str] = None
    model: Optional[str] = None
    series: Optional[str] = None
    storage: Optional[str] = None
    carrier: Optional[str] = None

    # Fields that must be present before a price estimate can be requested
    REQUIRED_FIELDS = ("brand", "model", "storage", "carrier")

    @property
    def is_complete(self) -> bool:
        """Whether every required field is present."""
        return not self.missing_fields()

    def missing_fields(self) -> List[str]:
        """Required fields that are still absent, in declaration order."""
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))

    def to_payload(self) -> Dict[str, Optional[str]]:
        """Field names as the pricing API expects them."""
        return {
            "brandName": self.brand,
            "modelName": self.model,
            "seriesName": self.series,
            "storageOption": self.storage,
            "carrierName": self.carrier,
        }
