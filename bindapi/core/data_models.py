"""Data models for the BIND Open-Banking resources."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

EcheqType = Literal["COMUN", "DIFERIDO", "CERTIFICADO"]
EcheqRole = Literal["ISSUER", "BENEFICIARY"]

DEFAULT_CURRENCY = "ARS"


class BindModel(BaseModel):
    """Response payloads keep fields the client does not know about."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class AccountRouting(BindModel):
    scheme: str
    address: str


class BankRouting(BindModel):
    scheme: str
    address: str


class MoneyValue(BindModel):
    currency: str
    amount: str


class Account(BindModel):
    id: str
    label: Optional[str] = None
    bank_id: Optional[str] = None
    account_routings: List[AccountRouting] = Field(default_factory=list)


class AccountOwner(BindModel):
    id_owner: Optional[str] = None
    display_name: Optional[str] = None


class AccountDetail(Account):
    number: Optional[str] = None
    owners: List[AccountOwner] = Field(default_factory=list)
    product_code: Optional[str] = None
    balance: Optional[MoneyValue] = None


class Balance(BindModel):
    type: Optional[str] = Field(default=None, description="AVAILABLE or CURRENT")
    currency: str
    amount: str


class AccountReference(BindModel):
    id: Optional[str] = None
    bank_id: Optional[str] = None
    account_id: Optional[str] = None


class Holder(BindModel):
    name: Optional[str] = None
    is_alias: Optional[bool] = None


class CounterpartyAccount(BindModel):
    holder: Optional[Holder] = None
    account_routings: List[AccountRouting] = Field(default_factory=list)
    bank_routing: Optional[BankRouting] = None


class TransactionDetails(BindModel):
    type: Optional[str] = None
    description: Optional[str] = None
    posted: Optional[str] = None
    completed: Optional[str] = None
    value: Optional[MoneyValue] = None
    new_balance: Optional[MoneyValue] = None


class Transaction(BindModel):
    """Represents a single account movement as reported by BIND."""

    id: str
    this_account: Optional[AccountReference] = None
    other_account: Optional[CounterpartyAccount] = None
    details: Optional[TransactionDetails] = None


class RoutedAccount(BindModel):
    account_routing: AccountRouting


class TransferResponse(BindModel):
    transaction_id: str
    status: Optional[str] = None
    from_: Optional[AccountReference] = Field(default=None, alias="from")
    to: Optional[RoutedAccount] = None
    value: Optional[MoneyValue] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None


class Debin(BindModel):
    debin_id: str
    status: Optional[str] = Field(default=None, description="PENDING, APPROVED, REJECTED, EXPIRED or CANCELLED")
    from_: Optional[RoutedAccount] = Field(default=None, alias="from")
    to: Optional[AccountReference] = None
    value: Optional[MoneyValue] = None
    description: Optional[str] = None
    expiration: Optional[str] = None
    created_at: Optional[str] = None
    approved_at: Optional[str] = None
    transaction_id: Optional[str] = None


class EcheqParty(BindModel):
    cuit: Optional[str] = None
    name: Optional[str] = None


class Echeq(BindModel):
    echeq_id: str
    echeq_number: Optional[str] = None
    status: Optional[str] = None
    issuer: Optional[EcheqParty] = None
    beneficiary: Optional[EcheqParty] = None
    value: Optional[MoneyValue] = None
    issue_date: Optional[str] = None
    payment_date: Optional[str] = None
    type: Optional[str] = None


class ValidationHolder(BindModel):
    name: Optional[str] = None
    cuit: Optional[str] = None
    cuit_type: Optional[str] = None


class BankInfo(BindModel):
    code: Optional[str] = None
    name: Optional[str] = None


class CbuValidation(BindModel):
    valid: bool = False
    scheme: Optional[str] = None
    address: Optional[str] = None
    holder: Optional[ValidationHolder] = None
    bank: Optional[BankInfo] = None
    account_type: Optional[str] = None
    currency: Optional[str] = None
    error: Optional[str] = None


class Cvu(BindModel):
    cvu: str
    alias: Optional[str] = None
    holder_cuit: Optional[str] = None
    reference: Optional[str] = None
    account_id: Optional[str] = None
    created_at: Optional[str] = None
    status: Optional[str] = None


# Request schemas


class TransferRequest(BaseModel):
    from_account_id: str
    to_cbu: str
    amount: Decimal
    description: str
    currency: str = DEFAULT_CURRENCY


class DebinRequest(BaseModel):
    account_id: str
    from_cbu: str
    amount: Decimal
    description: str
    expiration: datetime
    currency: str = DEFAULT_CURRENCY


class EcheqRequest(BaseModel):
    account_id: str
    beneficiary_cuit: str
    beneficiary_name: str
    amount: Decimal
    payment_date: Union[datetime, date]
    type: EcheqType = "COMUN"
    concept: str = ""
    currency: str = DEFAULT_CURRENCY


JsonDict = Dict[str, Any]
