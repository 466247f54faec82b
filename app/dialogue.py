"""
Dialogue handling for the Loop hospital network assistant

This module turns a structured query into the assistant's reply. It is shared
by the web and telephony channels.
"""

import logging
from typing import Optional
from app.config import settings
from app.interpreter import QueryInterpreter, RuleBasedQueryParser
from app.llm import GeminiQueryParser
from app.matcher import HospitalMatcher, get_hospital_matcher
from app.models import DialogueResult, Intent, QueryInfo

logger = logging.getLogger(__name__)

ERROR_REPLY = "I'm sorry, something went wrong while handling your request. Please try again."


class DialogueResponder:
    """Builds replies from a QueryInfo and directory lookups."""

    def __init__(self, matcher: HospitalMatcher, assistant_name: Optional[str] = None,
                 network_name: Optional[str] = None):
        self.matcher = matcher
        self.assistant_name = assistant_name or settings.assistant_name
        self.network_name = network_name or settings.network_name

    def greeting(self) -> str:
        return f"Hello! I am {self.assistant_name}, your hospital network assistant. How can I help you today?"

    def capabilities(self) -> str:
        return (
            f"I am {self.assistant_name}, your hospital network assistant. "
            "You can ask me to find hospitals in a city or confirm if a specific hospital "
            "in a city is in your network."
        )

    def respond(self, info: QueryInfo, introduced: bool = True) -> DialogueResult:
        """
        Produce the reply for one interpreted utterance.

        Args:
            info: Interpreted query
            introduced: Whether the assistant has already greeted this user

        Returns:
            DialogueResult: Reply text and end-of-conversation flag
        """
        if info.out_of_scope or info.intent == Intent.OUT_OF_SCOPE:
            return DialogueResult(
                reply="I'm sorry, I can't help with that. I am forwarding this to a human agent.",
                end_conversation=True,
            )

        if info.intent == Intent.FIND_NEARBY:
            return self._find_nearby(info)

        if info.intent == Intent.CONFIRM_IN_NETWORK:
            return self._confirm_in_network(info)

        reply = self.capabilities()
        if not introduced:
            reply = f"Hello! {reply}"
        return DialogueResult(reply=reply, end_conversation=False)

    def _find_nearby(self, info: QueryInfo) -> DialogueResult:
        if not info.city:
            return DialogueResult(
                reply=(
                    "I can definitely help you find hospitals, but I need to know the city. "
                    "In which city are you looking for hospitals?"
                ),
                end_conversation=False,
            )

        results = self.matcher.search_near_city(info.city, info.max_results or settings.default_max_results)
        if not results:
            return DialogueResult(
                reply=f"I could not find any hospitals in our network for {info.city}.",
                end_conversation=False,
            )

        lines = [f"{idx}. {h.name}, {h.address}, {h.city}" for idx, h in enumerate(results, 1)]
        reply = f"Here are {len(results)} hospitals around {info.city}: " + " ".join(lines)
        return DialogueResult(reply=reply, end_conversation=False)

    def _confirm_in_network(self, info: QueryInfo) -> DialogueResult:
        if not info.hospital_name:
            return DialogueResult(
                reply="I found several similar names. Can you please repeat the full hospital name and city?",
                end_conversation=False,
            )
        if not info.city:
            return DialogueResult(
                reply=(
                    "I have found hospitals with this name in multiple locations. "
                    "In which city are you looking for this hospital?"
                ),
                end_conversation=False,
            )

        if self.matcher.find_by_name_and_city(info.hospital_name, info.city):
            reply = f"Yes, {info.hospital_name} in {info.city} is in your {self.network_name} network."
        else:
            reply = f"I could not find {info.hospital_name} in {info.city} in your {self.network_name} network."
        return DialogueResult(reply=reply, end_conversation=False)


class DialogueHandler:
    """Top-level turn handler: interpret, respond, never raise."""

    def __init__(self, interpreter: QueryInterpreter, responder: DialogueResponder):
        self.interpreter = interpreter
        self.responder = responder

    async def handle_query(self, text: str, introduced: bool = True) -> DialogueResult:
        """
        Handle one user utterance.

        Args:
            text: Raw user text
            introduced: Whether the assistant has already greeted this user

        Returns:
            DialogueResult: Always a complete reply; failures become an apology
        """
        try:
            if not text or not text.strip():
                return DialogueResult(reply=self.responder.greeting(), end_conversation=False)

            info = await self.interpreter.extract_query_info(text)
            return self.responder.respond(info, introduced=introduced)
        except Exception as e:
            logger.exception(f"Error handling query {text!r}: {e}")
            return DialogueResult(reply=ERROR_REPLY, end_conversation=False)


def build_dialogue_handler(matcher: Optional[HospitalMatcher] = None) -> DialogueHandler:
    """Wire the Gemini and rule-based parsers to a responder."""
    interpreter = QueryInterpreter([GeminiQueryParser(), RuleBasedQueryParser()])
    responder = DialogueResponder(matcher or get_hospital_matcher())
    return DialogueHandler(interpreter, responder)


# Global handler instance
dialogue_handler = build_dialogue_handler()


def get_dialogue_handler() -> DialogueHandler:
    """Get the global dialogue handler."""
    return dialogue_handler
