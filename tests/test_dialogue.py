"""
Dialogue responder and top-level handler tests.
"""

import re
import pytest
from unittest.mock import AsyncMock, Mock

from app.dialogue import ERROR_REPLY, DialogueHandler, DialogueResponder, build_dialogue_handler
from app.directory import HospitalDirectory
from app.matcher import HospitalMatcher
from app.models import HospitalRecord, Intent, QueryInfo


class TestDialogueHandler:
    """End-to-end turns with the rule-based parser (no Gemini key)."""

    @pytest.mark.asyncio
    async def test_nearby_round_trip_lists_three_hospitals(self, handler):
        result = await handler.handle_query("find hospitals around Bangalore")

        assert result.end_conversation is False
        assert result.reply == (
            "Here are 3 hospitals around Bangalore: "
            "1. Manipal Hospital, 98, HAL Old Airport Road, Bangalore "
            "2. Apollo Hospital Bannerghatta, 154/11, Bannerghatta Road, Bangalore "
            "3. Fortis Hospital, 14, Cunningham Road, Bangalore"
        )
        assert re.findall(r"\b(\d)\. ", result.reply) == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_booking_hands_over_and_ends(self, handler):
        result = await handler.handle_query("book an appointment for tomorrow")

        assert result.end_conversation is True
        assert "human agent" in result.reply

    @pytest.mark.asyncio
    async def test_confirm_in_network_affirmative(self, handler):
        result = await handler.handle_query("confirm if Apollo Hospital in Chennai is in my network")

        assert result.reply == "Yes, Apollo Hospital in Chennai is in your Loop network."
        assert result.end_conversation is False

    @pytest.mark.asyncio
    async def test_confirm_in_network_negative(self):
        directory = HospitalDirectory([HospitalRecord(name="Apollo Hospital", address="x", city="Hyderabad")])
        handler = build_dialogue_handler(HospitalMatcher(directory))

        result = await handler.handle_query("confirm if Apollo Hospital in Chennai is in my network")

        assert result.reply == "I could not find Apollo Hospital in Chennai in your Loop network."
        assert result.end_conversation is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    async def test_empty_input_greets(self, handler, text):
        result = await handler.handle_query(text)

        assert result.reply.startswith("Hello! I am Loop AI")
        assert result.end_conversation is False

    @pytest.mark.asyncio
    async def test_unknown_city(self, handler):
        result = await handler.handle_query("find hospitals around Atlantis")

        assert result.reply == "I could not find any hospitals in our network for Atlantis."
        assert result.end_conversation is False

    @pytest.mark.asyncio
    async def test_unclassified_city_is_promoted(self, handler):
        result = await handler.handle_query("hospitals in Pune")

        assert result.reply.startswith("Here are 1 hospitals around Pune: 1. Ruby Hall Clinic")

    @pytest.mark.asyncio
    async def test_greeting_prefix_only_before_introduction(self, handler):
        first = await handler.handle_query("what can you do", introduced=False)
        later = await handler.handle_query("what can you do", introduced=True)

        assert first.reply.startswith("Hello! I am Loop AI")
        assert later.reply.startswith("I am Loop AI")

    @pytest.mark.asyncio
    async def test_internal_failure_becomes_apology(self, matcher):
        interpreter = Mock()
        interpreter.extract_query_info = AsyncMock(side_effect=RuntimeError("boom"))
        handler = DialogueHandler(interpreter, DialogueResponder(matcher))

        result = await handler.handle_query("find hospitals around Bangalore")

        assert result.reply == ERROR_REPLY
        assert result.end_conversation is False

    @pytest.mark.asyncio
    async def test_matcher_failure_becomes_apology(self):
        broken = Mock(spec=HospitalMatcher)
        broken.search_near_city.side_effect = RuntimeError("directory not loaded")
        handler = build_dialogue_handler(broken)

        result = await handler.handle_query("find hospitals around Bangalore")

        assert result.reply == ERROR_REPLY


class TestDialogueResponder:
    """Reply templates for each branch."""

    @pytest.fixture
    def responder(self, matcher):
        return DialogueResponder(matcher, assistant_name="Loop AI", network_name="Loop")

    def test_out_of_scope_flag_wins(self, responder):
        result = responder.respond(QueryInfo(intent=Intent.FIND_NEARBY, city="Pune", out_of_scope=True))

        assert result.end_conversation is True

    def test_find_nearby_without_city_asks(self, responder):
        result = responder.respond(QueryInfo(intent=Intent.FIND_NEARBY))

        assert "In which city are you looking for hospitals?" in result.reply
        assert result.end_conversation is False

    def test_find_nearby_respects_max_results(self, responder):
        result = responder.respond(QueryInfo(intent=Intent.FIND_NEARBY, city="Bangalore", max_results=2))

        assert result.reply.startswith("Here are 2 hospitals around Bangalore: ")
        assert "3. " not in result.reply

    def test_confirm_without_name_asks_to_repeat(self, responder):
        result = responder.respond(QueryInfo(intent=Intent.CONFIRM_IN_NETWORK, city="Chennai"))

        assert "repeat the full hospital name and city" in result.reply

    def test_confirm_without_city_asks_for_city(self, responder):
        result = responder.respond(QueryInfo(intent=Intent.CONFIRM_IN_NETWORK, hospital_name="Apollo Hospital"))

        assert "In which city are you looking for this hospital?" in result.reply

    def test_same_query_gives_same_reply(self, responder):
        info = QueryInfo(intent=Intent.FIND_NEARBY, city="Bangalore", max_results=3)

        assert responder.respond(info) == responder.respond(info)

    def test_custom_network_name(self, matcher):
        responder = DialogueResponder(matcher, network_name="Acme")
        result = responder.respond(QueryInfo(
            intent=Intent.CONFIRM_IN_NETWORK, city="Chennai", hospital_name="Apollo Hospital"
        ))

        assert result.reply == "Yes, Apollo Hospital in Chennai is in your Acme network."
