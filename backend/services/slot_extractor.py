"""
Slot extraction for device price estimates.

Turns a user's free-text message (or structured fields from a slot-filling
channel) into a partial SlotSet. Pattern tables are class constants so they
can be tested and extended without touching the matching logic.
"""
import logging
import re
from typing import Mapping, Optional

from models.slots import SlotSet

logger = logging.getLogger(__name__)


def _capitalize(token: str) -> str:
    """Upper-case the first letter and lower-case the rest."""
    return token[:1].upper() + token[1:].lower()


class SlotExtractor:
    """
    Extract device slots from a message using keyword patterns.

    The free-text path never supplies defaults; the structured path fills in
    storage and carrier when they are missing.
    """

    # Brand-family keyword -> canonical brand
    BRAND_KEYWORDS = {
        "iphone": "Apple",
        "galaxy": "Samsung",
        "pixel": "Google",
    }

    CARRIER_KEYWORDS = ("verizon", "at&t", "t-mobile", "sprint")
    UNLOCKED_KEYWORD = "unlocked"

    STORAGE_UNITS = ("gb", "tb")

    # Structured-path defaults
    DEFAULT_STORAGE = "128GB"
    DEFAULT_CARRIER = "Verizon"

    def __init__(self):
        brands = "|".join(re.escape(k) for k in self.BRAND_KEYWORDS)
        # An optional series letter ("S" in "Galaxy S21") is dropped
        self._model_pattern = re.compile(
            rf"({brands})\s*(?:[a-z](?=\d))?(\d+)(?:\s*(pro)\b)?(?:\s*(max)\b)?",
            re.IGNORECASE
        )
        units = "|".join(self.STORAGE_UNITS)
        self._storage_pattern = re.compile(rf"(\d+)\s*({units})", re.IGNORECASE)
        carriers = "|".join(re.escape(c) for c in self.CARRIER_KEYWORDS + (self.UNLOCKED_KEYWORD,))
        self._carrier_pattern = re.compile(rf"({carriers})", re.IGNORECASE)

    def extract(self, text: str, require_model: bool = True) -> Optional[SlotSet]:
        """
        Extract device slots from free text.

        Args:
            text: User message
            require_model: When True, return None unless a brand/model is
                recognized. Callers that already hold a partial SlotSet with a
                model pass False so a bare "128GB on AT&T" can be attributed.

        Returns:
            SlotSet with the recognized fields, or None if nothing usable
        """
        if not text:
            return None

        slots = SlotSet()

        model_match = self._model_pattern.search(text)
        if model_match:
            keyword, number, pro, max_ = model_match.groups()
            model = f"{_capitalize(keyword)} {number}"
            if pro:
                model += _capitalize(pro)
            if max_:
                model += _capitalize(max_)
            slots.brand = self.BRAND_KEYWORDS[keyword.lower()]
            slots.model = model
            slots.series = model

        storage_match = self._storage_pattern.search(text)
        if storage_match:
            slots.storage = f"{storage_match.group(1)}{storage_match.group(2).upper()}"

        carrier_match = self._carrier_pattern.search(text)
        if carrier_match:
            slots.carrier = _capitalize(carrier_match.group(1))

        if require_model and not slots.model:
            logger.debug(f"No device model recognized in: {text[:50]}")
            return None

        if slots.is_empty():
            return None

        logger.debug(f"Extracted slots: {slots}")
        return slots

    def extract_structured(self, fields: Mapping[str, Optional[str]]) -> Optional[SlotSet]:
        """
        Map slots supplied by a structured channel (API body, slot filler).

        Expects the pricing API's field names: brandName, modelName,
        seriesName, storageOption, carrierName. Brand and model are required;
        storage and carrier fall back to defaults.
        """
        brand = (fields.get("brandName") or "").strip()
        model = (fields.get("modelName") or "").strip()
        if not brand or not model:
            return None

        series = (fields.get("seriesName") or "").strip() or model
        storage = (fields.get("storageOption") or "").strip() or self.DEFAULT_STORAGE
        carrier = (fields.get("carrierName") or "").strip() or self.DEFAULT_CARRIER

        return SlotSet(brand=brand, model=model, series=series, storage=storage, carrier=carrier)
