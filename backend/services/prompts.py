"""Fixed user-facing replies and prompt builders for the dialogue engine."""
from typing import List, Optional, Sequence

from models.document import Document
from models.estimate import Estimate
from models.location import KioskLocation
from models.slots import SlotSet

# Location flow
LOCATION_INTRO = (
    "I'd be happy to help you find the nearest ecoATM kiosk! To locate the closest kiosk "
    "to you, I'll need your zip code. Please enter your 5-digit zip code."
)
ZIP_CODE_REPROMPT = (
    "To find ecoATM locations near you, I'll need your zip code. "
    "Please enter your 5-digit zip code."
)
LOCATION_FAILURE = (
    "I'm having trouble finding locations right now. Please try again later or visit "
    "our website at ecoatm.com to use the location finder."
)
MAX_LISTED_LOCATIONS = 3

# Estimate flow
DEVICE_INFO_REQUEST = (
    "I'd be happy to give you an estimate for your device! To provide an accurate estimate, "
    "I need to know the brand (like Apple, Samsung), model (like iPhone 13, Galaxy S21), "
    "storage size (like 128GB), and carrier (like Verizon, AT&T). "
    "Could you please provide these details?"
)
DEVICE_INFO_REPROMPT = (
    "I'm still having trouble understanding which device you want to get an estimate for. "
    "Please provide the brand (like Apple, Samsung), model (like iPhone 13, Galaxy S21), "
    "storage size (like 128GB), and carrier (like Verizon, AT&T)."
)
ESTIMATE_UNAVAILABLE = (
    "I'm sorry, I couldn't get an estimate for that device. Please check that the device "
    "information is correct or try a different device."
)
ESTIMATE_FAILURE = (
    "I'm sorry, I encountered an error while trying to get an estimate for your device. "
    "Please try again later."
)

# General questions
GENERAL_FAILURE = (
    "I'm sorry, I'm having trouble answering that right now. Please try again in a moment "
    "or visit our website at ecoatm.com."
)
CONTEXT_INTRO = "Here is information from ecoATM's website that may help answer the question:"
CONTEXT_OUTRO = "Please use this information to answer the user's question."

# Human phrasing of the slots we prompt for, in prompting order
MISSING_SLOT_PHRASES = (
    ("storage", "storage capacity (e.g., 128GB, 256GB)"),
    ("carrier", "carrier (e.g., Verizon, AT&T, T-Mobile, or Unlocked)"),
)


def missing_slot_prompt(slots: SlotSet) -> Optional[str]:
    """
    Ask for the storage and/or carrier still missing from ``slots``.

    Brand and model are never prompted here: a recognized model is required
    to reach this point. Returns None when nothing is missing.
    """
    missing: List[str] = [phrase for name, phrase in MISSING_SLOT_PHRASES if not getattr(slots, name)]
    if not missing:
        return None

    device = f"{slots.brand} {slots.model}"
    return (
        f"To provide an accurate estimate for your {device}, I need the {' and '.join(missing)}. "
        "Could you please provide this information?"
    )


def locations_found(zip_code: str, locations: Sequence[KioskLocation]) -> str:
    lines = "\n".join(loc.format_line() for loc in locations[:MAX_LISTED_LOCATIONS])
    return f"Here are some ecoATM locations near {zip_code}:\n{lines}"


def no_locations_found(zip_code: str) -> str:
    return (
        f"I couldn't find any ecoATM locations near {zip_code}. Please try another zip code "
        "or visit our website at ecoatm.com to use the location finder."
    )


def estimate_offer(slots: SlotSet, estimate: Estimate) -> str:
    return (
        f"Based on the information provided, your {slots.brand} {slots.model} "
        f"({slots.storage}, {slots.carrier}) is estimated to be worth {estimate.formatted_offer()}. "
        "This is an estimate for a device that powers on, has no screen damage, and no cracks. "
        "The actual offer may vary based on the condition of your device when assessed at an "
        "ecoATM kiosk."
    )


def build_context(documents: Sequence[Document]) -> str:
    """
    Context block citing each retrieved document by its source label.

    Returns an empty string when there is nothing to cite.
    """
    if not documents:
        return ""
    sections = "\n\n".join(f"From {doc.source}:\n{doc.content}" for doc in documents)
    return f"{CONTEXT_INTRO}\n\n{sections}\n\n{CONTEXT_OUTRO}"
