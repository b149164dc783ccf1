"""Bank linking and account endpoints"""

from fastapi import APIRouter, Depends, HTTPException, Request
from horizon.api.dependencies import get_bank_service, get_current_user, get_request_id, get_user_service
from horizon.api.errors import http_error, internal_error
from horizon.api.v1.schemas import (
    AccountDetailResponse,
    AccountSchema,
    AccountsResponse,
    ExchangePublicTokenRequest,
    ExchangePublicTokenResponse,
    LinkTokenResponse,
    TransactionSchema,
)
from horizon.domain.exceptions import HorizonError
from horizon.domain.models import AccountDetail, AccountsSummary, User
from horizon.services.banks import BankService
from horizon.services.users import UserService

router = APIRouter()


def accounts_response(summary: AccountsSummary) -> AccountsResponse:
    return AccountsResponse(
        data=[AccountSchema.model_validate(a) for a in summary.data],
        total_banks=summary.total_banks,
        total_current_balance=summary.total_current_balance,
    )


def account_detail_response(detail: AccountDetail) -> AccountDetailResponse:
    return AccountDetailResponse(
        data=AccountSchema.model_validate(detail.data),
        transactions=[TransactionSchema.model_validate(t) for t in detail.transactions],
    )


async def load_owned_account(
    appwrite_item_id: str,
    user: User,
    user_service: UserService,
    bank_service: BankService,
) -> AccountDetail:
    """Account detail for a bank, 404 unless it belongs to ``user``"""
    bank = await user_service.get_bank(appwrite_item_id)
    if bank.user_id != user.id:
        raise HTTPException(status_code=404, detail="Bank not found")
    return await bank_service.get_account(appwrite_item_id)


@router.post("/banks/link-token", response_model=LinkTokenResponse)
async def create_link_token(
    request: Request,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    """Token for opening Plaid Link in the browser"""
    request_id = get_request_id(request)
    try:
        link_token = await user_service.create_link_token(user)
    except HorizonError as e:
        raise http_error(e, request_id)

    return LinkTokenResponse(link_token=link_token)


@router.post("/banks/exchange", response_model=ExchangePublicTokenResponse, status_code=201)
async def exchange_public_token(
    body: ExchangePublicTokenRequest,
    request: Request,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
):
    """Finish Plaid Link: store the bank and attach it to Dwolla"""
    request_id = get_request_id(request)
    try:
        bank = await user_service.exchange_public_token(body.public_token, user)
    except HorizonError as e:
        raise http_error(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)

    return ExchangePublicTokenResponse(bank_id=bank.id, shareable_id=bank.shareable_id)


@router.get("/accounts", response_model=AccountsResponse)
async def list_accounts(
    request: Request,
    user: User = Depends(get_current_user),
    bank_service: BankService = Depends(get_bank_service),
):
    request_id = get_request_id(request)
    try:
        summary = await bank_service.get_accounts(user.id)
    except HorizonError as e:
        raise http_error(e, request_id)

    return accounts_response(summary)


@router.get("/accounts/{appwrite_item_id}", response_model=AccountDetailResponse)
async def get_account(
    appwrite_item_id: str,
    request: Request,
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    bank_service: BankService = Depends(get_bank_service),
):
    request_id = get_request_id(request)
    try:
        detail = await load_owned_account(appwrite_item_id, user, user_service, bank_service)
    except HorizonError as e:
        raise http_error(e, request_id)

    return account_detail_response(detail)
