from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests

from scheduler.assistant.llm import build_messages
from scheduler.models.provider import Provider
from scheduler.models.slot import Slot
from scheduler.services.ledger import SchedulingLedger

INTENT_BOOK = "book"
INTENT_CANCEL = "cancel"
INTENT_RESCHEDULE = "reschedule"
INTENT_SEARCH = "search"
INTENT_AI = "ai_response"

logger = logging.getLogger(__name__)

# Checked in order; the first match wins.
INTENT_PATTERNS = [
    (INTENT_CANCEL, re.compile(r"\b(cancel|drop)")),
    (INTENT_RESCHEDULE, re.compile(r"\b(reschedule|move|change)")),
    (INTENT_BOOK, re.compile(r"\b(book|schedule|appointment|see|visit)")),
]

DAY_HINT = re.compile(r"\b(monday|tuesday|wednesday|thursday|friday|mon|tue|wed|thu|fri)\b")
SEARCH_PREFIX = re.compile(r"^(find|search)\s*", re.IGNORECASE)

SEARCH_RESULT_LIMIT = 5


@dataclass
class ParsedMessage:
    intent: str
    provider: Optional[Provider] = None
    day_hint: Optional[str] = None


@dataclass
class AssistantReply:
    reply: str
    intent: str
    candidates: Optional[Dict[str, Any]] = None
    results: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"reply": self.reply, "intent": self.intent}
        if self.candidates is not None:
            payload["candidates"] = self.candidates
        if self.intent == INTENT_SEARCH:
            payload["results"] = self.results
        return payload


def last_name(doctor: str) -> str:
    return doctor.split()[-1].lower() if doctor.split() else ""


def parse_message(text: str, providers: List[Provider]) -> ParsedMessage:
    lowered = text.lower()

    intent = INTENT_SEARCH
    for candidate, pattern in INTENT_PATTERNS:
        if pattern.search(lowered):
            intent = candidate
            break

    provider = next(
        (p for p in providers if last_name(p.doctor) and last_name(p.doctor) in lowered),
        None,
    )

    day_match = DAY_HINT.search(lowered)
    return ParsedMessage(
        intent=intent,
        provider=provider,
        day_hint=day_match.group(1) if day_match else None,
    )


def slot_label(slot: Slot) -> str:
    return slot.start.strftime("%a %b %d, %I:%M %p UTC")


def slot_candidates(slots: List[Slot]) -> List[Dict[str, str]]:
    return [
        {"start": slot.start.strftime("%Y-%m-%dT%H:%M:%SZ"), "label": slot_label(slot)}
        for slot in slots
    ]


def filter_by_day(slots: List[Slot], day_hint: Optional[str]) -> List[Slot]:
    if not day_hint:
        return slots
    matching = [slot for slot in slots if slot.start.strftime("%a").lower() == day_hint[:3]]
    return matching or slots


class BookingAssistant:
    """Turns a free-text message into booking candidates.

    The assistant only reads ledger state. Acting on a candidate is left to
    the caller, which goes through the regular appointment endpoints.
    """

    def __init__(
        self,
        ledger: SchedulingLedger,
        slot_limit: int = 3,
        llm: Optional[Callable[[List[Dict[str, str]]], str]] = None,
    ) -> None:
        self.ledger = ledger
        self.slot_limit = slot_limit
        self.llm = llm

    def respond(self, message: str) -> AssistantReply:
        providers = self.ledger.list_providers()

        if self.llm is not None:
            try:
                return AssistantReply(reply=self.llm(build_messages(message, providers)), intent=INTENT_AI)
            except (requests.RequestException, KeyError, IndexError, TypeError, ValueError):
                logger.warning("Chat completion failed; answering with the rule-based assistant.", exc_info=True)

        parsed = parse_message(message, providers)

        if parsed.intent == INTENT_BOOK and parsed.provider is not None:
            return self._book(parsed)
        if parsed.intent == INTENT_CANCEL:
            return self._cancel()
        if parsed.intent == INTENT_RESCHEDULE:
            return self._reschedule(parsed)
        return self._search(message)

    def _open_slots(self, provider_id: str, day_hint: Optional[str]) -> List[Slot]:
        slots = self.ledger.upcoming_open_slots(provider_id=provider_id, limit=20)
        return filter_by_day(slots, day_hint)[: self.slot_limit]

    def _book(self, parsed: ParsedMessage) -> AssistantReply:
        provider = parsed.provider
        slots = self._open_slots(provider.id, parsed.day_hint)
        if not slots:
            return AssistantReply(
                reply=f"Sorry, {provider.doctor} has no available slots right now.",
                intent=INTENT_BOOK,
                candidates={"providerId": provider.id, "slots": []},
            )

        labels = ", ".join(slot_label(slot) for slot in slots)
        return AssistantReply(
            reply=f"I found {len(slots)} available slots with {provider.doctor}: {labels}. Would you like to book one?",
            intent=INTENT_BOOK,
            candidates={"providerId": provider.id, "slots": slot_candidates(slots)},
        )

    def _cancel(self) -> AssistantReply:
        appointments = self.ledger.active_appointments(limit=1)
        if not appointments:
            return AssistantReply(
                reply="You don't have any active appointments to cancel.",
                intent=INTENT_CANCEL,
                candidates={"appointmentId": None},
            )

        appointment = appointments[0]
        return AssistantReply(
            reply=(
                f"I found your appointment with {appointment.provider.doctor} on "
                f"{appointment.start.strftime('%a %b %d, %I:%M %p UTC')}. Would you like to cancel it?"
            ),
            intent=INTENT_CANCEL,
            candidates={"appointmentId": appointment.id},
        )

    def _reschedule(self, parsed: ParsedMessage) -> AssistantReply:
        appointments = self.ledger.active_appointments(limit=1)
        if not appointments:
            return AssistantReply(
                reply="You don't have any active appointments to reschedule.",
                intent=INTENT_RESCHEDULE,
                candidates={"appointmentId": None},
            )

        appointment = appointments[0]
        doctor = appointment.provider.doctor
        slots = self._open_slots(appointment.provider_id, parsed.day_hint)
        if not slots:
            return AssistantReply(
                reply=f"Sorry, no available slots to reschedule your appointment with {doctor}.",
                intent=INTENT_RESCHEDULE,
                candidates={"appointmentId": appointment.id, "slots": []},
            )

        labels = ", ".join(slot_label(slot) for slot in slots)
        return AssistantReply(
            reply=f"I can reschedule your appointment with {doctor}. Available slots: {labels}. Which would you prefer?",
            intent=INTENT_RESCHEDULE,
            candidates={"appointmentId": appointment.id, "slots": slot_candidates(slots)},
        )

    def _search(self, message: str) -> AssistantReply:
        query = SEARCH_PREFIX.sub("", message).strip()
        providers = self.ledger.search_providers(query)[:SEARCH_RESULT_LIMIT]
        results = [
            {"id": p.id, "doctor": p.doctor, "location": p.location}
            for p in providers
        ]
        if results:
            names = ", ".join(result["doctor"] for result in results)
            reply = f"I found {len(results)} matching providers. For example: {names}."
        else:
            reply = f'I didn\'t find a provider that matches "{query}".'
        return AssistantReply(reply=reply, intent=INTENT_SEARCH, results=results)
