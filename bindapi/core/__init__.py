"""Core package exposing the BIND API client and its models."""

from .bind_client import BindClient, BindEnvironment, PendingCall
from .data_models import (
    Account,
    AccountDetail,
    Balance,
    CbuValidation,
    Cvu,
    Debin,
    DebinRequest,
    Echeq,
    EcheqRequest,
    Transaction,
    TransferRequest,
    TransferResponse,
)
from .errors import ApiErrorInfo, BindAPIError, BindAuthenticationError, BindTransportError
from .routing import detect_scheme
from .session import Credentials, SessionManager, TokenSession

__all__ = [
    "BindClient",
    "BindEnvironment",
    "PendingCall",
    "ApiErrorInfo",
    "BindAPIError",
    "BindAuthenticationError",
    "BindTransportError",
    "Credentials",
    "SessionManager",
    "TokenSession",
    "detect_scheme",
    "Account",
    "AccountDetail",
    "Balance",
    "CbuValidation",
    "Cvu",
    "Debin",
    "DebinRequest",
    "Echeq",
    "EcheqRequest",
    "Transaction",
    "TransferRequest",
    "TransferResponse",
]
