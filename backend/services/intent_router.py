"""
Intent Router for the ecoATM Chat Assistant.

This module implements deterministic message classification using an ordered
decision tree over the message text and the session's pending-state flags.
It reads the session but never mutates it: the returned RouteDecision names
the state transition the dialogue engine has to apply.
"""

from dataclasses import dataclass
from enum import Enum
import logging
import re
from typing import Optional

from models.conversation import ASSISTANT, Session
from models.slots import SlotSet
from services.slot_extractor import SlotExtractor
from services.slot_merger import merge_slots

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Next step the dialogue engine takes for a message."""
    RESOLVE_LOCATION = "resolve_location"
    ASK_FOR_ZIP = "ask_for_zip"
    CONTINUE_LOCATION_WAIT = "continue_location_wait"
    RESOLVE_ESTIMATE = "resolve_estimate"
    ASK_FOR_SLOT = "ask_for_slot"
    GENERAL = "general"


@dataclass
class RouteDecision:
    """
    Result of message classification.

    Attributes:
        action: What the engine should do next
        rule_triggered: Which decision tree rule was applied
        reasoning: Explanation of the classification decision
        zip_code: Zip code found in the message (RESOLVE_LOCATION)
        slots: Merged device slots (RESOLVE_ESTIMATE / ASK_FOR_SLOT)
    """
    action: Action
    rule_triggered: str
    reasoning: str
    zip_code: Optional[str] = None
    slots: Optional[SlotSet] = None


class IntentRouter:
    """
    Deterministic message classifier for the three dialogue flows.

    Rules are evaluated in a fixed order and the first match wins; the order
    is what resolves messages that carry several signals at once.
    """

    # Rule names reported in RouteDecision.rule_triggered
    RULE_ZIP_CODE = "zip_code"
    RULE_AWAITING_ZIP_CODE = "awaiting_zip_code"
    RULE_LOCATION_KEYWORD = "location_keyword"
    RULE_LOCATION_AFFIRMATIVE = "location_affirmative"
    RULE_DEVICE_COMPLETE = "device_complete"
    RULE_DEVICE_PARTIAL = "device_partial"
    RULE_DEVICE_UNRECOGNIZED = "device_unrecognized"
    RULE_DEVICE_INFO_REQUIRED = "device_info_required"
    RULE_DEFAULT = "default"

    ZIP_CODE_PATTERN = re.compile(r"\b\d{5}(?:-\d{4})?\b")

    # Matched as whole words
    LOCATION_KEYWORDS = {
        "location", "kiosk", "near", "nearby", "closest", "nearest", "find", "where", "atm"
    }

    # Matched against the whole (trimmed) message
    AFFIRMATIVE_PATTERN = re.compile(r"^(yes|yeah|yep|sure|ok|okay|find|show)$", re.IGNORECASE)

    # Phrase an earlier assistant reply uses to offer a location search
    LOCATION_OFFER_PHRASE = "nearest ecoATM location"

    WHAT_IS_PATTERN = re.compile(r"what\s+is\s+(?:an\s+)?ecoatm", re.IGNORECASE)

    # Matched as substrings
    ESTIMATE_KEYWORDS = {
        "worth", "value", "price", "estimate", "offer", "quote", "much", "pay", "get", "sell"
    }
    DEVICE_KEYWORDS = {"phone", "iphone", "samsung", "device"} | set(SlotExtractor.BRAND_KEYWORDS)

    def __init__(self, slot_extractor: Optional[SlotExtractor] = None):
        self.slot_extractor = slot_extractor or SlotExtractor()
        sorted_keywords = sorted(self.LOCATION_KEYWORDS, key=len, reverse=True)
        patterns_regex = '|'.join(re.escape(k) for k in sorted_keywords)
        self._location_regex = re.compile(rf'\b({patterns_regex})\b', re.IGNORECASE)

    def classify(self, message: str, session: Session) -> RouteDecision:
        """
        Classify a message given the current session state.

        The decision tree uses the following rules in order:
        1. Zip code in message → RESOLVE_LOCATION (ignores every flag)
        2. Session awaiting a zip code → ASK_FOR_ZIP (repeat prompt)
        3. Location signal, unless "what is ecoATM" → ASK_FOR_ZIP
        4. Estimate signal or session awaiting device info → slot extraction:
           complete → RESOLVE_ESTIMATE, otherwise ASK_FOR_SLOT
        5. Default → GENERAL

        Args:
            message: Incoming user message
            session: Session state before this message is recorded

        Returns:
            RouteDecision with the action and its payload
        """
        message = message or ""

        # Rule 1: Zip code
        zip_match = self.ZIP_CODE_PATTERN.search(message)
        if zip_match:
            zip_code = zip_match.group(0)
            logger.info(f"Route: {Action.RESOLVE_LOCATION.value} (zip code {zip_code})")
            return RouteDecision(
                action=Action.RESOLVE_LOCATION,
                rule_triggered=self.RULE_ZIP_CODE,
                reasoning=f"Message contains zip code {zip_code}",
                zip_code=zip_code
            )

        # Rule 2: Still waiting for a zip code
        if session.awaiting_zip_code:
            logger.info(f"Route: {Action.ASK_FOR_ZIP.value} (awaiting zip code)")
            return RouteDecision(
                action=Action.ASK_FOR_ZIP,
                rule_triggered=self.RULE_AWAITING_ZIP_CODE,
                reasoning="Session is waiting for a zip code and none was given"
            )

        # Rule 3: Location intent
        location_rule = self._location_signal(message, session)
        if location_rule:
            logger.info(f"Route: {Action.ASK_FOR_ZIP.value} ({location_rule}) - {message[:50]}")
            return RouteDecision(
                action=Action.ASK_FOR_ZIP,
                rule_triggered=location_rule,
                reasoning="Message asks for a kiosk location without a zip code"
            )

        # Rule 4: Estimate intent or pending device info
        if self._is_estimate_query(message) or session.awaiting_device_info:
            return self._route_estimate(message, session)

        # Rule 5: Default - General question
        logger.info(f"Route: {Action.GENERAL.value} (default) - {message[:50]}")
        return RouteDecision(
            action=Action.GENERAL,
            rule_triggered=self.RULE_DEFAULT,
            reasoning="Message does not match any location or estimate triggers"
        )

    def _location_signal(self, message: str, session: Session) -> Optional[str]:
        """Name of the location rule that fires for ``message``, if any."""
        if self.WHAT_IS_PATTERN.search(message):
            return None

        if self._location_regex.search(message):
            return self.RULE_LOCATION_KEYWORD

        previous = session.last_turn()
        previously_offered = (
            previous is not None
            and previous.role == ASSISTANT
            and self.LOCATION_OFFER_PHRASE in previous.content
        )
        if previously_offered and self.AFFIRMATIVE_PATTERN.match(message.strip()):
            return self.RULE_LOCATION_AFFIRMATIVE

        return None

    def _is_estimate_query(self, message: str) -> bool:
        """Check for both an estimate keyword and a device keyword (substrings)."""
        message_lower = message.lower()
        return (
            any(keyword in message_lower for keyword in self.ESTIMATE_KEYWORDS)
            and any(keyword in message_lower for keyword in self.DEVICE_KEYWORDS)
        )

    def _route_estimate(self, message: str, session: Session) -> RouteDecision:
        """Extract slots, merge with stored partial slots and pick the estimate step."""
        # A stored partial already names the device, so bare storage/carrier answers count
        incoming = self.slot_extractor.extract(message, require_model=session.partial_slots is None)
        slots = merge_slots(session.partial_slots, incoming)

        if slots is not None and slots.is_complete:
            logger.info(f"Route: {Action.RESOLVE_ESTIMATE.value} - {slots.brand} {slots.model}")
            return RouteDecision(
                action=Action.RESOLVE_ESTIMATE,
                rule_triggered=self.RULE_DEVICE_COMPLETE,
                reasoning="Device information is complete",
                slots=slots
            )

        if slots is not None:
            missing = ", ".join(slots.missing_fields())
            logger.info(f"Route: {Action.ASK_FOR_SLOT.value} (missing {missing})")
            return RouteDecision(
                action=Action.ASK_FOR_SLOT,
                rule_triggered=self.RULE_DEVICE_PARTIAL,
                reasoning=f"Device information is missing: {missing}",
                slots=slots
            )

        if session.awaiting_device_info:
            logger.info(f"Route: {Action.ASK_FOR_SLOT.value} (device still unrecognized)")
            return RouteDecision(
                action=Action.ASK_FOR_SLOT,
                rule_triggered=self.RULE_DEVICE_UNRECOGNIZED,
                reasoning="Still waiting for device information and none was recognized"
            )

        logger.info(f"Route: {Action.ASK_FOR_SLOT.value} (no device information)")
        return RouteDecision(
            action=Action.ASK_FOR_SLOT,
            rule_triggered=self.RULE_DEVICE_INFO_REQUIRED,
            reasoning="Estimate requested without recognizable device information"
        )
