"""
Twilio voice webhooks for the Loop hospital network assistant

This module defines the telephony channel:
- Incoming call webhook greeting the caller and gathering speech
- Speech result webhook answering through the shared dialogue handler
- Call status callback evicting finished calls from the session store
"""

import logging
from typing import Union
from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response
from twilio.request_validator import RequestValidator
from twilio.twiml.voice_response import Gather, VoiceResponse
from app.config import settings
from app.dialogue import get_dialogue_handler
from app.memory import get_call_session_store

logger = logging.getLogger(__name__)

VOICE_ENDPOINT = "/twilio/voice"
RESPONSE_ENDPOINT = "/twilio/voice/response"
STATUS_ENDPOINT = "/twilio/voice/status"

NO_INPUT_PROMPT = "Sorry, I didn't catch that. Please tell me how I can help you."
NO_INPUT_GOODBYE = "I still can't hear you, so I'll end the call now. Goodbye!"
TERMINAL_CALL_STATUSES = {"completed", "busy", "failed", "no-answer", "canceled"}


async def verify_twilio_signature(request: Request) -> None:
    """Reject webhooks without a valid X-Twilio-Signature when an auth token is configured."""
    if not settings.twilio_auth_token:
        return

    form = await request.form()
    signature = request.headers.get("X-Twilio-Signature", "")
    validator = RequestValidator(settings.twilio_auth_token)
    if not validator.validate(str(request.url), dict(form), signature):
        logger.warning(f"Rejected Twilio webhook with invalid signature: {request.url.path}")
        raise HTTPException(status_code=403, detail="Invalid Twilio signature")


router = APIRouter(dependencies=[Depends(verify_twilio_signature)])


def _say(target: Union[VoiceResponse, Gather], text: str) -> None:
    target.say(text, voice=settings.twilio_voice, language=settings.twilio_language)


def _gather(resp: VoiceResponse, prompt: str) -> VoiceResponse:
    """Speak a prompt inside a speech <Gather>, then fall through to a no-input turn."""
    gather = Gather(
        input="speech",
        action=RESPONSE_ENDPOINT,
        method="POST",
        speech_timeout="auto",
        language=settings.twilio_language,
    )
    _say(gather, prompt)
    resp.append(gather)
    resp.redirect(RESPONSE_ENDPOINT, method="POST")
    return resp


def _twiml(resp: VoiceResponse) -> Response:
    return Response(content=str(resp), media_type="application/xml")


@router.post(VOICE_ENDPOINT)
async def voice_webhook(CallSid: str = Form(default="")) -> Response:
    """Greet a new caller and listen for their question."""
    handler = get_dialogue_handler()
    if CallSid:
        get_call_session_store().mark_greeted(CallSid)
    logger.info(f"Incoming call {CallSid or '<unknown>'}")

    resp = _gather(VoiceResponse(), handler.responder.greeting())
    return _twiml(resp)


@router.post(RESPONSE_ENDPOINT)
async def voice_response_webhook(
    SpeechResult: str = Form(default=""),
    CallSid: str = Form(default=""),
) -> Response:
    """Answer the caller's speech and either hang up or keep listening."""
    store = get_call_session_store()
    speech = SpeechResult.strip()
    if not speech:
        logger.info(f"No speech received on call {CallSid or '<unknown>'}")
        if CallSid and store.record_no_input(CallSid) >= settings.max_no_input_prompts:
            resp = VoiceResponse()
            _say(resp, NO_INPUT_GOODBYE)
            resp.hangup()
            store.end_session(CallSid)
            return _twiml(resp)
        return _twiml(_gather(VoiceResponse(), NO_INPUT_PROMPT))

    if CallSid:
        store.reset_no_input(CallSid)
    introduced = store.is_greeted(CallSid) if CallSid else False

    result = await get_dialogue_handler().handle_query(speech, introduced=introduced)
    if CallSid:
        store.mark_greeted(CallSid)
    logger.info(f"Call {CallSid or '<unknown>'}: '{speech}' -> endConversation={result.end_conversation}")

    resp = VoiceResponse()
    if result.end_conversation:
        _say(resp, result.reply)
        resp.hangup()
        if CallSid:
            store.end_session(CallSid)
        return _twiml(resp)

    return _twiml(_gather(resp, result.reply))


@router.post(STATUS_ENDPOINT)
async def call_status_webhook(
    CallSid: str = Form(default=""),
    CallStatus: str = Form(default=""),
) -> Response:
    """Evict the session of a call that has finished."""
    if CallSid and CallStatus.lower() in TERMINAL_CALL_STATUSES:
        get_call_session_store().end_session(CallSid)
        logger.info(f"Call {CallSid} finished with status {CallStatus}")
    return Response(status_code=204)


def get_telephony_router() -> APIRouter:
    """Get the Twilio webhook router."""
    return router
