"""Merging of partial device slots across dialogue turns."""
from dataclasses import fields
from typing import Optional

from models.slots import SlotSet


def merge_slots(existing: Optional[SlotSet], incoming: Optional[SlotSet]) -> Optional[SlotSet]:
    """
    Combine previously stored slots with newly extracted ones.

    If either side is absent the other is returned unchanged. Otherwise each
    field takes the incoming value when present, else the existing one.
    Completeness is a derived property of the result.
    """
    if existing is None:
        return incoming
    if incoming is None:
        return existing

    merged = {
        f.name: getattr(incoming, f.name) or getattr(existing, f.name)
        for f in fields(SlotSet)
    }
    return SlotSet(**merged)
