import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

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
    EcheqRole,
    JsonDict,
    Transaction,
    TransferRequest,
    TransferResponse,
)
from .encoding import QueryValue, encode_query, format_amount, format_date, format_timestamp
from .errors import (
    INVALID_RESPONSE,
    BindAPIError,
    normalize_http_error,
    normalize_transport_error,
)
from .routing import account_routing
from .session import DEFAULT_TOKEN_LIFETIME, Credentials, SessionManager

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000
LOGIN_PATH = "/api/auth/direct-login"
JSON_CONTENT_TYPE = "application/json"

ModelT = TypeVar("ModelT", bound=BaseModel)


class BindEnvironment(str, Enum):
    SANDBOX = "https://sandbox.bind.com.ar"
    PRODUCTION = "https://api.bind.com.ar"  # requires approval from BIND

    @classmethod
    def from_name(cls, name: str) -> "BindEnvironment":
        """Accept ``sandbox``/``production`` (any case) or the base URL itself."""
        value = name.strip()
        try:
            return cls[value.upper()]
        except KeyError:
            return cls(value.rstrip("/"))


@dataclass(frozen=True)
class PendingCall:
    """One outbound request, built per call and discarded once it resolves."""

    method: str
    path: str
    data: Optional[JsonDict] = None
    params: Optional[Mapping[str, QueryValue]] = None
    authenticated: bool = True

    @property
    def url(self) -> str:
        query = encode_query(self.params)
        return f"{self.path}?{query}" if query else self.path


def _load_model(model: Type[ModelT], payload: Any, status_code: int) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise BindAPIError(
            status_code,
            INVALID_RESPONSE,
            f"Unexpected {model.__name__} payload",
            {"errors": exc.errors(include_url=False)},
        ) from exc


class BindClient:
    """Async client for the BIND Open-Banking API (DirectLogin + OBP v4)."""

    BANK_ID = "bind.322.ar"
    API_VERSION = "v4.0.0"

    def __init__(
        self,
        username: str,
        password: str,
        consumer_key: str,
        environment: Union[BindEnvironment, str] = BindEnvironment.SANDBOX,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        token_lifetime: Union[timedelta, float] = DEFAULT_TOKEN_LIFETIME,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not all([username, password, consumer_key]):
            raise ValueError("username, password, and consumer_key are required.")
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive.")
        if not isinstance(token_lifetime, timedelta):
            token_lifetime = timedelta(seconds=token_lifetime)

        if not isinstance(environment, BindEnvironment):
            environment = BindEnvironment.from_name(environment)
        self.environment = environment
        self.base_url = environment.value
        self.timeout_ms = timeout_ms
        self.credentials = Credentials(username=username, password=password, consumer_key=consumer_key)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout_seconds),
            transport=transport,
        )
        self.sessions = SessionManager(
            self.credentials,
            self._login_exchange,
            token_lifetime=token_lifetime,
            clock=clock,
        )

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "BindClient":
        """Build a client from :class:`bindapi.config.Settings`."""
        return cls(
            settings.username,
            settings.password,
            settings.consumer_key,
            environment=settings.environment,
            timeout_ms=settings.timeout_ms,
            token_lifetime=settings.token_lifetime_seconds,
            **kwargs,
        )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    async def __aenter__(self) -> "BindClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Dispose the underlying HTTP client."""
        await self._client.aclose()

    # ---- request pipeline -------------------------------------------------

    def _get_headers(self, authenticated: bool) -> Dict[str, str]:
        headers = {
            "Content-Type": JSON_CONTENT_TYPE,
            "Accept": JSON_CONTENT_TYPE,
        }
        token = self.sessions.current_token
        if authenticated and token:
            headers["Authorization"] = f'DirectLogin token="{token}"'
        return headers

    async def _send(self, call: PendingCall) -> Tuple[int, Any]:
        if call.authenticated:
            await self.sessions.ensure_valid()
        headers = self._get_headers(call.authenticated)

        started = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.request(call.method, call.url, headers=headers, json=call.data),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.RequestError) as exc:
            error = normalize_transport_error(exc)
            logger.warning("%s %s failed without a response: %s", call.method, call.path, error)
            raise error from exc

        logger.debug(
            "%s %s -> %s (%.0f ms)",
            call.method,
            call.path,
            response.status_code,
            (time.monotonic() - started) * 1000,
        )
        return response.status_code, self._handle_response(call, response)

    @staticmethod
    def _handle_response(call: PendingCall, response: httpx.Response) -> Any:
        if not response.is_success:
            error = normalize_http_error(response)
            logger.warning("%s %s rejected: %s", call.method, call.path, error)
            raise error

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise BindAPIError(response.status_code, INVALID_RESPONSE, "Response body is not valid JSON") from exc

    async def request(
        self,
        method: str,
        path: str,
        *,
        data: Optional[JsonDict] = None,
        params: Optional[Mapping[str, QueryValue]] = None,
        authenticated: bool = True,
        response_model: Optional[Type[ModelT]] = None,
    ) -> Any:
        """Perform one call against the API.

        Authenticated calls log in first when the session is missing or expired.
        Returns the decoded JSON body (``{}`` for 204), or ``response_model``
        loaded from it. Every failure is raised as :class:`BindAPIError`.
        """
        call = PendingCall(method.upper(), path, data, params, authenticated)
        status_code, payload = await self._send(call)
        if response_model is None:
            return payload
        return _load_model(response_model, payload, status_code)

    async def _request_list(
        self,
        path: str,
        key: str,
        model: Type[ModelT],
        params: Optional[Mapping[str, QueryValue]] = None,
    ) -> List[ModelT]:
        status_code, payload = await self._send(PendingCall("GET", path, params=params))
        items = payload.get(key) if isinstance(payload, dict) else None
        return [_load_model(model, item, status_code) for item in items or []]

    async def _login_exchange(self, credentials: Credentials) -> JsonDict:
        _, payload = await self._send(
            PendingCall("POST", LOGIN_PATH, data=credentials.login_payload(), authenticated=False)
        )
        return payload

    def _obp(self, path: str) -> str:
        return f"/obp/{self.API_VERSION}{path}"

    def _account_path(self, account_id: str, suffix: str = "") -> str:
        return self._obp(f"/banks/{self.BANK_ID}/accounts/{account_id}{suffix}")

    def _my_account_path(self, account_id: str, suffix: str) -> str:
        return self._obp(f"/my/banks/{self.BANK_ID}/accounts/{account_id}{suffix}")

    @staticmethod
    def _money(amount: Any, currency: str) -> Dict[str, str]:
        return {"currency": currency, "amount": format_amount(amount)}

    # ---- authentication ---------------------------------------------------

    async def authenticate(self) -> str:
        """Run a login exchange now and return the new token."""
        return await self.sessions.refresh()

    # ---- accounts ---------------------------------------------------------

    async def get_accounts(self) -> List[Account]:
        return await self._request_list(self._obp("/my/accounts"), "accounts", Account)

    async def get_account_detail(self, account_id: str) -> AccountDetail:
        return await self.request("GET", self._my_account_path(account_id, "/account"), response_model=AccountDetail)

    async def get_balance(self, account_id: str) -> List[Balance]:
        return await self._request_list(self._my_account_path(account_id, "/balances"), "balances", Balance)

    async def get_transactions(
        self,
        account_id: str,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Transaction]:
        params: Dict[str, QueryValue] = {"limit": limit, "offset": offset}
        if from_date:
            params["from_date"] = format_timestamp(from_date)
        if to_date:
            params["to_date"] = format_timestamp(to_date)
        return await self._request_list(
            self._my_account_path(account_id, "/transactions"), "transactions", Transaction, params
        )

    # ---- transfers --------------------------------------------------------

    async def transfer(self, request: TransferRequest) -> TransferResponse:
        """Transfer to a CBU, CVU or alias; the routing scheme is inferred from the address."""
        body = {
            "to": {"account_routing": account_routing(request.to_cbu)},
            "value": self._money(request.amount, request.currency),
            "description": request.description,
            "challenge_type": "SANDBOX_TAN",
        }
        logger.info("Transfer of %s %s from account %s", request.currency, request.amount, request.from_account_id)
        return await self.request(
            "POST",
            self._account_path(request.from_account_id, "/transfer-to-account"),
            data=body,
            response_model=TransferResponse,
        )

    # ---- DEBIN ------------------------------------------------------------

    async def create_debin(self, request: DebinRequest) -> Debin:
        """Ask the payer's bank for an immediate debit (DEBIN)."""
        body = {
            "from": {"account_routing": account_routing(request.from_cbu)},
            "value": self._money(request.amount, request.currency),
            "description": request.description,
            "expiration": format_timestamp(request.expiration),
            "recurrence": "ONE_TIME",
        }
        return await self.request("POST", self._account_path(request.account_id, "/debin"), data=body, response_model=Debin)

    async def get_debin_status(self, account_id: str, debin_id: str) -> Debin:
        return await self.request("GET", self._account_path(account_id, f"/debin/{debin_id}"), response_model=Debin)

    async def cancel_debin(self, account_id: str, debin_id: str) -> None:
        await self.request("DELETE", self._account_path(account_id, f"/debin/{debin_id}"))

    # ---- eCheqs -----------------------------------------------------------

    async def issue_echeq(self, request: EcheqRequest) -> Echeq:
        body = {
            "beneficiary": {"cuit": request.beneficiary_cuit, "name": request.beneficiary_name},
            "value": self._money(request.amount, request.currency),
            "payment_date": format_date(request.payment_date),
            "type": request.type,
            "concept": request.concept,
        }
        return await self.request(
            "POST", self._account_path(request.account_id, "/echeq/issue"), data=body, response_model=Echeq
        )

    async def deposit_echeq(self, account_id: str, echeq_id: str, endorsement: bool = False) -> Echeq:
        return await self.request(
            "POST",
            self._account_path(account_id, "/echeq/deposit"),
            data={"echeq_id": echeq_id, "endorsement": endorsement},
            response_model=Echeq,
        )

    async def endorse_echeq(
        self,
        account_id: str,
        echeq_id: str,
        new_beneficiary_cuit: str,
        new_beneficiary_name: str,
    ) -> Echeq:
        return await self.request(
            "POST",
            self._account_path(account_id, f"/echeq/{echeq_id}/endorse"),
            data={"new_beneficiary": {"cuit": new_beneficiary_cuit, "name": new_beneficiary_name}},
            response_model=Echeq,
        )

    async def get_echeqs(
        self,
        account_id: str,
        status: Optional[str] = None,
        role: Optional[EcheqRole] = None,
    ) -> List[Echeq]:
        params: Dict[str, QueryValue] = {}
        if status:
            params["status"] = status
        if role:
            params["role"] = role
        return await self._request_list(self._account_path(account_id, "/echeq"), "echeqs", Echeq, params)

    # ---- routing validation -----------------------------------------------

    async def validate_cbu_cvu(self, address: str) -> CbuValidation:
        """Validate a CBU/CVU/alias and fetch the holder information."""
        routing = account_routing(address)
        return await self.request(
            "GET",
            self._obp("/banks/validate-account-routing"),
            params={"scheme": routing["scheme"], "address": address},
            response_model=CbuValidation,
        )

    # ---- CVU --------------------------------------------------------------

    async def create_cvu(
        self,
        account_id: str,
        alias: str,
        holder_cuit: str,
        reference: Optional[str] = None,
    ) -> Cvu:
        body: Dict[str, str] = {"alias": alias, "holder_cuit": holder_cuit}
        if reference:
            body["reference"] = reference
        return await self.request("POST", self._account_path(account_id, "/cvu"), data=body, response_model=Cvu)

    async def get_cvus(self, account_id: str) -> List[Cvu]:
        return await self._request_list(self._account_path(account_id, "/cvu"), "cvus", Cvu)

    async def deactivate_cvu(self, account_id: str, cvu: str) -> None:
        await self.request("DELETE", self._account_path(account_id, f"/cvu/{cvu}"))
