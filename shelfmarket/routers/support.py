import logging
import re
import uuid
from datetime import datetime
from typing import Dict, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import SupportTicket, WhatsAppConfig
from ..repository import Repository
from ..schemas import SupportIn, SupportOut, WhatsAppConfigIn, WhatsAppConfigOut
from .common import error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["support"])

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DEFAULT_INITIAL_MESSAGE = "Hello! How can we help you today?"


def _validate_support(payload: SupportIn) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not payload.full_name.strip():
        errors["full_name"] = "Full name is required."
    if not EMAIL_RE.match(payload.email.strip()):
        errors["email"] = "A valid email address is required."
    if not payload.message.strip():
        errors["message"] = "Message is required."
    return errors


def _config(db: Session) -> WhatsAppConfig:
    config = db.query(WhatsAppConfig).order_by(WhatsAppConfig.id).first()
    if config is None:
        config = Repository(db, WhatsAppConfig).create(initial_message=DEFAULT_INITIAL_MESSAGE, numbers=[])
    return config


def _active_numbers(numbers: List[dict]) -> List[dict]:
    return sorted((n for n in numbers if n.get("active", True)), key=lambda n: n.get("order", 0))


@router.post("/support/submit", response_model=SupportOut, status_code=status.HTTP_201_CREATED)
def submit_support(payload: SupportIn, db: Session = Depends(get_db)):
    errors = _validate_support(payload)
    if errors:
        return error_response(" ".join(errors.values()))
    ticket = Repository(db, SupportTicket).create(
        full_name=payload.full_name.strip(),
        email=payload.email.strip(),
        company_name=payload.company_name,
        inquiry_type=payload.inquiry_type,
        message=payload.message.strip(),
    )
    logger.info("Support ticket %s received (%s)", ticket.id, ticket.inquiry_type)
    return ticket


@router.get("/whatsapp/config", response_model=WhatsAppConfigOut)
def get_whatsapp_config(db: Session = Depends(get_db)):
    config = _config(db)
    return {"initial_message": config.initial_message, "numbers": _active_numbers(config.numbers or [])}


@router.put("/whatsapp/config", response_model=WhatsAppConfigOut)
def put_whatsapp_config(payload: WhatsAppConfigIn, db: Session = Depends(get_db)):
    config = _config(db)
    numbers = []
    for number in payload.numbers:
        data = number.model_dump()
        data["id"] = data["id"] or uuid.uuid4().hex[:8]
        numbers.append(data)
    config.initial_message = payload.initial_message.strip()
    config.numbers = numbers
    config.updated_at = datetime.now()
    db.commit()
    db.refresh(config)
    logger.info("WhatsApp config updated with %d numbers", len(numbers))
    return {"initial_message": config.initial_message, "numbers": _active_numbers(config.numbers)}
