"""Page loaders - everything the home and transaction-history screens render"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from horizon.api.dependencies import get_bank_service, get_current_user, get_request_id, get_user_service
from horizon.api.errors import http_error
from horizon.api.v1.banks import accounts_response, load_owned_account
from horizon.api.v1.schemas import (
    AccountSchema,
    CategoryCount,
    HomeResponse,
    TransactionHistoryResponse,
    TransactionPageSchema,
    UserResponse,
)
from horizon.config import settings
from horizon.domain.exceptions import HorizonError
from horizon.domain.models import AccountDetail, AccountsSummary, User
from horizon.domain.transactions import count_categories, paginate
from horizon.services.banks import BankService
from horizon.services.users import UserService
from horizon.utils.formatting import format_amount, parse_page

router = APIRouter()


async def load_selected_account(
    selected_id: Optional[str],
    user: User,
    user_service: UserService,
    bank_service: BankService,
) -> tuple[AccountsSummary, Optional[str], Optional[AccountDetail]]:
    """
    Accounts summary plus the selected account's detail.

    With no explicit selection the first linked bank is used; a user with no
    banks gets no detail.
    """
    summary = await bank_service.get_accounts(user.id)
    appwrite_item_id = selected_id or (summary.data[0].appwrite_item_id if summary.data else None)

    detail = None
    if appwrite_item_id:
        detail = await load_owned_account(appwrite_item_id, user, user_service, bank_service)
    return summary, appwrite_item_id, detail


@router.get("/home", response_model=HomeResponse)
async def home(
    request: Request,
    id: Optional[str] = Query(None, description="Appwrite id of the selected bank"),
    page: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    bank_service: BankService = Depends(get_bank_service),
):
    """Greeting, total balance, recent transactions and the sidebar"""
    request_id = get_request_id(request)
    try:
        summary, appwrite_item_id, detail = await load_selected_account(id, user, user_service, bank_service)
    except HorizonError as e:
        raise http_error(e, request_id)

    transactions = detail.transactions if detail else []
    transaction_page = paginate(transactions, parse_page(page), settings.transactions_per_page)

    return HomeResponse(
        user=UserResponse.model_validate(user),
        accounts=accounts_response(summary),
        appwrite_item_id=appwrite_item_id,
        account=AccountSchema.model_validate(detail.data) if detail else None,
        transactions=TransactionPageSchema.model_validate(transaction_page),
        categories=[CategoryCount(**c) for c in count_categories(transactions)],
        banks=[AccountSchema.model_validate(a) for a in summary.data[:2]],
    )


@router.get("/transaction-history", response_model=TransactionHistoryResponse)
async def transaction_history(
    request: Request,
    id: Optional[str] = Query(None, description="Appwrite id of the selected bank"),
    page: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    bank_service: BankService = Depends(get_bank_service),
):
    """Bank details and the paginated transaction table"""
    request_id = get_request_id(request)
    try:
        _, appwrite_item_id, detail = await load_selected_account(id, user, user_service, bank_service)
    except HorizonError as e:
        raise http_error(e, request_id)

    transactions = detail.transactions if detail else []

    return TransactionHistoryResponse(
        appwrite_item_id=appwrite_item_id,
        account=AccountSchema.model_validate(detail.data) if detail else None,
        formatted_current_balance=format_amount(detail.data.current_balance if detail else None),
        transactions=TransactionPageSchema.model_validate(
            paginate(transactions, parse_page(page), settings.transactions_per_page)
        ),
    )
