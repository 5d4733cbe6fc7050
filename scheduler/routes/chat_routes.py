from fastapi import APIRouter, Depends, HTTPException, status

from scheduler.assistant.intents import BookingAssistant
from scheduler.assistant.llm import client_from_config
from scheduler.core import config
from scheduler.core.errors import SchedulingError
from scheduler.dependencies import as_http_error, ensure_database_ready, get_ledger
from scheduler.schemas import ChatRequest
from scheduler.services.ledger import SchedulingLedger

router = APIRouter(tags=['chat'])


@router.post('')
def chat(data: ChatRequest, ledger: SchedulingLedger = Depends(get_ledger)):
    message = (data.message or '').strip()
    if not message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='message required',
        )

    ensure_database_ready()

    try:
        assistant = BookingAssistant(
            ledger,
            slot_limit=config.ASSISTANT_SLOT_LIMIT,
            llm=client_from_config(),
        )
        reply = assistant.respond(message)
    except SchedulingError as exc:
        raise as_http_error(exc) from exc

    return reply.to_dict()
