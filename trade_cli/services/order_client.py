"""
Trade API Client

Talks to the remote trade-execution service:
- POST /api/v2/order           create an order, receive unsigned transactions
- POST /api/v2/order/complete  submit the signed transactions for broadcast

Both endpoints use bearer-token auth and answer with a ``success`` flag.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
import httpx

from trade_cli.config.config import DEFAULT_SLIPPAGE_BPS
from trade_cli.services.errors import OrderServiceError

logger = logging.getLogger(__name__)

ORDER_PATH = "/api/v2/order"
COMPLETE_PATH = "/api/v2/order/complete"

DIRECTIONS = ("buy", "sell")


@dataclass(frozen=True)
class OrderRequest:
    signer_address: str
    token_address: str
    ui_amount: str
    direction: str  # "buy" or "sell"
    network_id: int
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    mev_protection: bool = True

    def to_payload(self) -> Dict[str, Any]:
        return {
            "signerAddress": self.signer_address,
            "tokenAddress": self.token_address,
            "uiAmount": self.ui_amount,
            "direction": self.direction,
            "slippageBps": self.slippage_bps,
            "mevProtection": self.mev_protection,
            "networkId": self.network_id,
        }


@dataclass(frozen=True)
class PermitDescriptor:
    """EIP-712 payload the service wants signed before the transaction."""
    domain: Dict[str, Any]
    types: Dict[str, Any]
    values: Dict[str, Any]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PermitDescriptor":
        return cls(
            domain=data.get("domain", {}),
            types=data.get("types", {}),
            values=data.get("values", {}),
        )


@dataclass(frozen=True)
class TransactionContext:
    id: Any
    unsigned: Any  # serialized hex string or transaction object
    permit: Optional[PermitDescriptor] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionContext":
        eip712 = (data.get("permit2") or {}).get("eip712")
        return cls(
            id=data.get("id"),
            unsigned=data.get("unsigned"),
            permit=PermitDescriptor.from_dict(eip712) if eip712 else None,
        )


@dataclass(frozen=True)
class SubmissionContext:
    id: Any
    signed: str
    permit_signature: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.id}
        if self.permit_signature is not None:
            payload["permit2"] = {"eip712": {"signature": self.permit_signature}}
        payload["signed"] = self.signed
        return payload


@dataclass(frozen=True)
class OrderResponse:
    success: bool
    order_id: Any = None
    transactions: List[TransactionContext] = field(default_factory=list)
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderResponse":
        success = bool(data.get("success"))
        txs = (data.get("transactions") or []) if success else []
        return cls(
            success=success,
            order_id=data.get("id"),
            transactions=[TransactionContext.from_dict(t) for t in txs],
            message=data.get("message"),
        )


@dataclass(frozen=True)
class BroadcastResult:
    hash: Optional[str] = None
    token_delta: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BroadcastResult":
        delta = data.get("tokenDelta")
        return cls(
            hash=data.get("hash") or None,
            token_delta=str(delta) if delta not in (None, "") else None,
        )


@dataclass(frozen=True)
class CompletionResponse:
    success: bool
    transactions: List[BroadcastResult] = field(default_factory=list)
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompletionResponse":
        return cls(
            success=bool(data.get("success")),
            transactions=[BroadcastResult.from_dict(t) for t in data.get("transactions") or []],
            message=data.get("message"),
        )


class TradeApiClient:
    """Async client for the trade-execution service."""

    def __init__(
        self,
        api_token: str,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.session = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    async def close(self):
        await self.session.aclose()

    async def __aenter__(self) -> "TradeApiClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def _get_auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_token}"}

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a JSON body and return the decoded result envelope."""
        resp = await self.session.post(
            f"{self.base_url}{path}",
            json=payload,
            headers=self._get_auth_headers()
        )
        logger.debug("POST %s -> HTTP %s", path, resp.status_code)

        try:
            data = resp.json()
        except ValueError:
            data = None

        # Error statuses that still carry a {success, message} envelope are service errors
        if isinstance(data, dict) and "success" in data:
            return data
        if resp.status_code >= 400:
            raise OrderServiceError(
                f"HTTP {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code
            )
        raise OrderServiceError(
            f"Unexpected response from {path}: {resp.text[:200]}",
            status_code=resp.status_code
        )

    async def create_order(self, request: OrderRequest) -> OrderResponse:
        """Request an order and receive its unsigned transaction contexts."""
        data = await self._post(ORDER_PATH, request.to_payload())
        response = OrderResponse.from_dict(data)
        if response.success:
            logger.info(
                "Order %s created with %d transaction(s)",
                response.order_id, len(response.transactions)
            )
        else:
            logger.warning("Order rejected: %s", response.message)
        return response

    async def complete_order(
        self,
        order_id: Any,
        submissions: List[SubmissionContext]
    ) -> CompletionResponse:
        """Submit signed transactions, in order, for broadcast."""
        body = {
            "id": order_id,
            "transactions": [s.to_payload() for s in submissions],
        }
        data = await self._post(COMPLETE_PATH, body)
        response = CompletionResponse.from_dict(data)
        if not response.success:
            logger.warning("Order %s completion failed: %s", order_id, response.message)
        return response
