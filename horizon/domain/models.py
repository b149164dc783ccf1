"""Domain models - pure Python dataclasses mirroring the external APIs"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class User:
    """Profile document joined to an Appwrite account and a Dwolla customer"""

    id: str
    user_id: str
    email: str
    first_name: str
    last_name: str
    dwolla_customer_id: str
    dwolla_customer_url: str
    address1: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    date_of_birth: str = ""
    ssn: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class Bank:
    """Linked institution record holding Plaid and Dwolla references"""

    id: str
    user_id: str
    bank_id: str  # Plaid item id
    account_id: str
    access_token: str
    funding_source_url: str
    shareable_id: str


@dataclass
class Institution:
    institution_id: str
    name: str
    url: Optional[str] = None
    logo: Optional[str] = None
    primary_color: Optional[str] = None


@dataclass
class Account:
    """Point-in-time balance snapshot from Plaid"""

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
    shareable_id: str = ""


@dataclass
class Transaction:
    """Display shape shared by Plaid purchases and Dwolla transfers"""

    id: str
    name: str
    amount: float
    date: datetime
    category: str
    type: str  # "debit" or "credit"
    payment_channel: str = ""
    pending: bool = False
    account_id: Optional[str] = None
    image: Optional[str] = None


@dataclass
class TransferRecord:
    """Transfer document stored after a successful Dwolla transfer"""

    id: str
    name: str
    amount: float
    sender_id: str
    sender_bank_id: str
    receiver_id: str
    receiver_bank_id: str
    email: str
    created_at: datetime
    channel: str = "online"
    category: str = "Transfer"


@dataclass
class AccountsSummary:
    data: List[Account]
    total_banks: int
    total_current_balance: float


@dataclass
class AccountDetail:
    data: Account
    transactions: List[Transaction] = field(default_factory=list)


@dataclass
class TransactionPage:
    items: List[Transaction]
    page: int
    total_pages: int
    total_items: int


@dataclass
class NewUser:
    """Sign-up details shared by the Appwrite profile and the Dwolla customer"""

    email: str
    first_name: str
    last_name: str
    address1: str
    city: str
    state: str
    postal_code: str
    date_of_birth: str  # YYYY-MM-DD
    ssn: str  # last four digits

    def profile(self) -> Dict[str, str]:
        return {
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "address1": self.address1,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "dateOfBirth": self.date_of_birth,
            "ssn": self.ssn,
        }

    def dwolla_customer(self) -> Dict[str, str]:
        return {**self.profile(), "type": "personal"}
