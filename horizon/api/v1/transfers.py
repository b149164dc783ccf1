"""POST /v1/transfers - move money between linked banks"""

import logging
from fastapi import APIRouter, Depends, Request
from horizon.api.dependencies import get_current_user, get_request_id, get_transfer_service
from horizon.api.errors import http_error, internal_error
from horizon.api.v1.schemas import TransferRequest, TransferResponse
from horizon.domain.exceptions import HorizonError
from horizon.domain.models import User
from horizon.services.transfers import TransferService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/transfers", response_model=TransferResponse, status_code=201)
async def create_transfer(
    body: TransferRequest,
    request: Request,
    user: User = Depends(get_current_user),
    transfer_service: TransferService = Depends(get_transfer_service),
):
    """
    Transfer funds from one of the user's banks to a recipient.

    Flow:
    1. Resolve the recipient's bank from their shareable id
    2. Check the sending bank belongs to the user
    3. Create the Dwolla transfer between funding sources
    4. Record the transfer so both banks show it in their history
    """
    request_id = get_request_id(request)
    try:
        record = await transfer_service.create_transfer(
            user=user,
            sender_bank_id=body.sender_bank_id,
            shareable_id=body.shareable_id,
            amount=body.amount,
            name=body.name,
            email=body.email,
        )
    except HorizonError as e:
        raise http_error(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)

    logger.info("Transfer recorded", extra={"request_id": request_id, "transfer_id": record.id})
    return TransferResponse(
        id=record.id,
        name=record.name,
        amount=record.amount,
        sender_bank_id=record.sender_bank_id,
        receiver_bank_id=record.receiver_bank_id,
        created_at=record.created_at,
    )
