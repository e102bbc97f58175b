"""Unit tests for reply composition."""
import sys
sys.path.insert(0, 'backend')

from models.document import Document
from models.estimate import Estimate
from models.location import KioskLocation
from models.slots import SlotSet
from services import prompts


def _location(i):
    return KioskLocation(name=f"Kiosk {i}", address=f"{i} Main St", city="San Diego", state="CA")


class TestMissingSlotPrompt:
    """Test suite for the missing-slot prompt."""

    def test_only_carrier_missing(self):
        slots = SlotSet(brand="Apple", model="Iphone 12", storage="64GB")
        message = prompts.missing_slot_prompt(slots)
        assert "carrier" in message
        assert "storage" not in message
        assert "Apple Iphone 12" in message

    def test_only_storage_missing(self):
        slots = SlotSet(brand="Apple", model="Iphone 12", carrier="Verizon")
        message = prompts.missing_slot_prompt(slots)
        assert "I need the storage capacity (e.g., 128GB, 256GB)." in message
        assert "carrier" not in message

    def test_storage_before_carrier(self):
        slots = SlotSet(brand="Samsung", model="Galaxy 21")
        message = prompts.missing_slot_prompt(slots)
        assert (
            "I need the storage capacity (e.g., 128GB, 256GB) and "
            "carrier (e.g., Verizon, AT&T, T-Mobile, or Unlocked)"
        ) in message

    def test_complete_returns_none(self):
        slots = SlotSet(brand="Apple", model="Iphone 12", storage="64GB", carrier="Verizon")
        assert prompts.missing_slot_prompt(slots) is None


class TestReplies:

    def test_locations_found_lists_first_three(self):
        message = prompts.locations_found("92101", [_location(i) for i in range(5)])
        assert message.startswith("Here are some ecoATM locations near 92101:")
        assert "- Kiosk 0: 0 Main St, San Diego, CA" in message
        assert "Kiosk 2" in message
        assert "Kiosk 3" not in message

    def test_no_locations_found(self):
        assert "couldn't find any ecoATM locations near 00000" in prompts.no_locations_found("00000")

    def test_estimate_offer_formats_dollars(self):
        slots = SlotSet(brand="Apple", model="Iphone 12", storage="64GB", carrier="Verizon")
        message = prompts.estimate_offer(slots, Estimate(offer=123))
        assert "Apple Iphone 12 (64GB, Verizon)" in message
        assert "$123.00" in message
        assert "no cracks" in message

    def test_build_context_empty(self):
        assert prompts.build_context([]) == ""

    def test_build_context_cites_sources(self):
        documents = [
            Document(document_id="a-0", url="https://a", title="FAQ", content="Answer one"),
            Document(document_id="b-0", url="https://b", title="Terms", content="Answer two"),
        ]
        context = prompts.build_context(documents)
        assert context.startswith(prompts.CONTEXT_INTRO)
        assert "From FAQ (https://a):\nAnswer one" in context
        assert "From Terms (https://b):\nAnswer two" in context
        assert context.endswith(prompts.CONTEXT_OUTRO)
