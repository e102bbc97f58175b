"""
Dialogue engine for the ecoATM Chat Assistant.

Runs one conversational turn end to end:
1. Serializes the turn on the conversation's lock
2. Classifies the message with the IntentRouter
3. Executes the routed action against the gateways
4. Applies the session state transition and records both turns
"""
import asyncio
from dataclasses import dataclass
import logging
from typing import Awaitable, Optional, TypeVar

from config import GATEWAY_TIMEOUT_SECONDS, RETRIEVAL_TOP_K, SYSTEM_PROMPT
from models.conversation import ASSISTANT, USER, Session
from services import prompts
from services.errors import NotFoundError, UpstreamError
from services.gateways import CompletionGateway, LocationGateway, PricingGateway
from services.intent_router import Action, IntentRouter, RouteDecision
from services.llm_client import LLMClient
from services.retrieval_engine import RetrievalEngine
from services.session_store import SessionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DialogueReply:
    """Outcome of one turn."""
    reply: str
    user_message: str
    conversation_id: str


class DialogueEngine:
    """Orchestrates routing, gateway calls and session updates for each turn."""

    def __init__(
        self,
        session_store: SessionStore,
        router: IntentRouter,
        retrieval_engine: RetrievalEngine,
        location_gateway: LocationGateway,
        pricing_gateway: PricingGateway,
        completion_gateway: CompletionGateway,
        system_prompt: str = SYSTEM_PROMPT,
        top_k: int = RETRIEVAL_TOP_K,
        gateway_timeout: float = GATEWAY_TIMEOUT_SECONDS
    ):
        self.session_store = session_store
        self.router = router
        self.retrieval_engine = retrieval_engine
        self.location_gateway = location_gateway
        self.pricing_gateway = pricing_gateway
        self.completion_gateway = completion_gateway
        self.system_prompt = system_prompt
        self.top_k = top_k
        self.gateway_timeout = gateway_timeout
        logger.info("Initialized DialogueEngine")

    async def handle_message(self, message: str, conversation_id: Optional[str] = None) -> DialogueReply:
        """
        Process one user message.

        Args:
            message: User message text
            conversation_id: Existing conversation id; a new one is assigned when omitted

        Returns:
            DialogueReply with the assistant reply and the conversation id

        The turn runs as its own task: if the caller is cancelled the turn
        still completes and its reply is recorded in the session.
        """
        if conversation_id is None:
            conversation_id = self.session_store.new_conversation_id()
        task = asyncio.ensure_future(self._run_turn(message, conversation_id))
        return await asyncio.shield(task)

    async def _run_turn(self, message: str, conversation_id: str) -> DialogueReply:
        async with self.session_store.lock(conversation_id):
            session = self.session_store.get_or_create(conversation_id)

            # Classified before recording, so the last turn is the previous assistant reply
            decision = self.router.classify(message, session)
            session.add_turn(USER, message)

            reply = await self._execute(decision, message, session)

            session.add_turn(ASSISTANT, reply)
            self.session_store.save(session)

        logger.info(
            f"Turn complete: conversation={conversation_id}, action={decision.action.value}, "
            f"rule={decision.rule_triggered}"
        )
        return DialogueReply(reply=reply, user_message=message, conversation_id=conversation_id)

    async def _execute(self, decision: RouteDecision, message: str, session: Session) -> str:
        if decision.action == Action.RESOLVE_LOCATION:
            return await self._resolve_location(decision.zip_code, session)
        if decision.action in (Action.ASK_FOR_ZIP, Action.CONTINUE_LOCATION_WAIT):
            return self._ask_for_zip(decision, session)
        if decision.action == Action.RESOLVE_ESTIMATE:
            return await self._resolve_estimate(decision, session)
        if decision.action == Action.ASK_FOR_SLOT:
            return self._ask_for_slot(decision, session)
        return await self._answer_general(message, session)

    def _ask_for_zip(self, decision: RouteDecision, session: Session) -> str:
        if decision.rule_triggered == IntentRouter.RULE_AWAITING_ZIP_CODE:
            return prompts.ZIP_CODE_REPROMPT

        # Only one pending flow drives the next message
        session.clear_device_info()
        session.awaiting_zip_code = True
        return prompts.LOCATION_INTRO

    async def _resolve_location(self, zip_code: str, session: Session) -> str:
        session.awaiting_zip_code = False
        try:
            locations = await self._call_gateway(self.location_gateway.find_by_zip(zip_code), "location")
        except NotFoundError as e:
            logger.info(f"No location for zip code {zip_code}: {e}")
            return prompts.no_locations_found(zip_code)
        except UpstreamError as e:
            logger.error(f"Location lookup failed for {zip_code}: {e}", exc_info=True)
            return prompts.LOCATION_FAILURE

        if not locations:
            return prompts.no_locations_found(zip_code)
        return prompts.locations_found(zip_code, locations)

    def _ask_for_slot(self, decision: RouteDecision, session: Session) -> str:
        if decision.rule_triggered == IntentRouter.RULE_DEVICE_PARTIAL:
            session.partial_slots = decision.slots
            session.awaiting_device_info = True
            return prompts.missing_slot_prompt(decision.slots) or prompts.DEVICE_INFO_REPROMPT

        if decision.rule_triggered == IntentRouter.RULE_DEVICE_UNRECOGNIZED:
            return prompts.DEVICE_INFO_REPROMPT

        session.awaiting_device_info = True
        return prompts.DEVICE_INFO_REQUEST

    async def _resolve_estimate(self, decision: RouteDecision, session: Session) -> str:
        slots = decision.slots
        session.clear_device_info()
        try:
            estimate = await self._call_gateway(self.pricing_gateway.get_estimate(slots), "pricing")
        except UpstreamError as e:
            logger.error(f"Estimate failed for {slots.brand} {slots.model}: {e}", exc_info=True)
            return prompts.ESTIMATE_FAILURE

        if not estimate.has_offer:
            logger.info(f"No offer for {slots.brand} {slots.model}")
            return prompts.ESTIMATE_UNAVAILABLE
        return prompts.estimate_offer(slots, estimate)

    async def _answer_general(self, message: str, session: Session) -> str:
        try:
            documents = await self.retrieval_engine.search(message, top_k=self.top_k)
            context = prompts.build_context(documents)
            system_prompt = LLMClient.build_system_prompt(self.system_prompt, context)
            return await self._call_gateway(
                self.completion_gateway.complete(list(session.turns), system_prompt), "completion"
            )
        except UpstreamError as e:
            logger.error(f"General answer failed: {e}", exc_info=True)
            return prompts.GENERAL_FAILURE

    async def _call_gateway(self, call: Awaitable[T], name: str) -> T:
        """Await a gateway call, turning a timeout into an UpstreamError."""
        try:
            return await asyncio.wait_for(call, timeout=self.gateway_timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamError(
                "TIMEOUT_ERROR",
                f"{name} gateway timed out after {self.gateway_timeout}s",
                {"gateway": name}
            ) from e
