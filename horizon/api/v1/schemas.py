"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SignInRequest(BaseModel):
    """Request body for POST /v1/auth/sign-in"""

    email: EmailStr
    password: str = Field(..., min_length=8)


class SignUpRequest(SignInRequest):
    """Request body for POST /v1/auth/sign-up"""

    first_name: str = Field(..., min_length=3)
    last_name: str = Field(..., min_length=3)
    address1: str = Field(..., max_length=50)
    city: str = Field(..., max_length=50)
    state: str = Field(..., min_length=2, max_length=2, description="Two-letter state code")
    postal_code: str = Field(..., min_length=3, max_length=6)
    date_of_birth: date
    ssn: str = Field(..., pattern=r"^\d{4}$", description="Last four digits")


class UserResponse(BaseModel):
    """Public profile fields; never exposes SSN or Dwolla ids"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    email: str
    first_name: str
    last_name: str
    address1: str
    city: str
    state: str
    postal_code: str


class AuthResponse(BaseModel):
    success: bool
    user: Optional[UserResponse] = None


class LinkTokenResponse(BaseModel):
    link_token: str


class ExchangePublicTokenRequest(BaseModel):
    public_token: str = Field(..., min_length=1)


class ExchangePublicTokenResponse(BaseModel):
    public_token_exchange: str = "complete"
    bank_id: str
    shareable_id: str


class AccountSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    available_balance: Optional[float]
    current_balance: float
    institution_id: str
    name: str
    official_name: Optional[str]
    mask: str
    type: str
    subtype: str
    appwrite_item_id: str
    shareable_id: str


class TransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    amount: float
    date: datetime
    category: str
    type: str
    payment_channel: str
    pending: bool
    account_id: Optional[str] = None
    image: Optional[str] = None


class AccountsResponse(BaseModel):
    """Response for GET /v1/accounts"""

    data: List[AccountSchema]
    total_banks: int
    total_current_balance: float


class AccountDetailResponse(BaseModel):
    """Response for GET /v1/accounts/{appwrite_item_id}"""

    data: AccountSchema
    transactions: List[TransactionSchema]


class TransactionPageSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    items: List[TransactionSchema]
    page: int
    total_pages: int
    total_items: int


class CategoryCount(BaseModel):
    name: str
    count: int
    total_count: int


class HomeResponse(BaseModel):
    """Response for GET /v1/home"""

    user: UserResponse
    accounts: AccountsResponse
    appwrite_item_id: Optional[str]
    account: Optional[AccountSchema] = None
    transactions: TransactionPageSchema
    categories: List[CategoryCount]
    banks: List[AccountSchema]


class TransactionHistoryResponse(BaseModel):
    """Response for GET /v1/transaction-history"""

    appwrite_item_id: Optional[str]
    account: Optional[AccountSchema] = None
    formatted_current_balance: str
    transactions: TransactionPageSchema


class TransferRequest(BaseModel):
    """Request body for POST /v1/transfers"""

    sender_bank_id: str = Field(..., min_length=1, description="Appwrite id of the sending bank")
    shareable_id: str = Field(..., min_length=8, description="Receiver's shareable account id")
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    name: str = Field("", max_length=100, description="Transfer note")
    email: EmailStr


class TransferResponse(BaseModel):
    id: str
    name: str
    amount: float
    sender_bank_id: str
    receiver_bank_id: str
    created_at: datetime
