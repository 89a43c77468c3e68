"""Independent Reserve REST API client."""

from __future__ import annotations

import functools
import logging
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping

import aiohttp

from .errors import ConfigurationError, IndependentReserveError, ValidationError
from .request import (
    DEFAULT_SERVER,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    RequestBuilder,
    to_iso8601,
)
from .result import Failure, Result
from .signing import NonceSource
from .transport import HttpTransport

if TYPE_CHECKING:
    from ..settings import ClientSettings

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


class OrderType(Enum):
    """Order types accepted by :meth:`IndependentReserveClient.place_order`."""

    MARKET_OFFER = "MarketOffer"
    MARKET_BID = "MarketBid"
    LIMIT_OFFER = "LimitOffer"
    LIMIT_BID = "LimitBid"

    @property
    def is_market(self) -> bool:
        return self in (OrderType.MARKET_OFFER, OrderType.MARKET_BID)


def _order_type_value(order_type: OrderType | str) -> str:
    return order_type.value if isinstance(order_type, OrderType) else order_type


def _check_paging(function_name: str, page_index: Any, page_size: Any) -> None:
    if isinstance(page_index, bool) or not isinstance(page_index, int) or page_index < 1:
        raise ValidationError(f"{function_name} pageIndex {page_index} is not >= 1")
    if (
        isinstance(page_size, bool)
        or not isinstance(page_size, int)
        or not 1 <= page_size <= MAX_PAGE_SIZE
    ):
        raise ValidationError(f"{function_name} pageSize {page_size} is not >= 1 and <= {MAX_PAGE_SIZE}")


def _returns_failure(func: Callable[..., Awaitable[Result]]) -> Callable[..., Awaitable[Result]]:
    """Convert client errors raised before dispatch into a ``Failure``."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Result:
        try:
            return await func(*args, **kwargs)
        except IndependentReserveError as exc:
            logger.warning("%s rejected before dispatch: %s", func.__name__, exc.message)
            return Failure(exc)

    return wrapper


class IndependentReserveClient:
    """Async client for the Independent Reserve public and private APIs.

    Every endpoint returns a ``Success`` or ``Failure``; errors never
    propagate past the method call. Private endpoints need both an API key
    and secret.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        server: str | None = None,
        timeout_ms: int | None = None,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        session: aiohttp.ClientSession | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: API key, required for private endpoints
            api_secret: API secret, required for private endpoints
            server: Base URL of the API server
            timeout_ms: Per-request timeout in milliseconds
            user_agent: User-Agent header sent with every request
            session: Existing aiohttp session to reuse

        Raises:
            ConfigurationError: If the secret cannot be used as HMAC key material
        """
        if api_secret:
            try:
                api_secret.encode("utf-8")
            except UnicodeEncodeError as exc:
                raise ConfigurationError("API secret is not valid UTF-8 key material", cause=exc) from exc

        self.builder = RequestBuilder(
            api_key,
            api_secret,
            server=server or DEFAULT_SERVER,
            timeout_ms=timeout_ms or DEFAULT_TIMEOUT_MS,
            user_agent=user_agent,
            nonce_source=NonceSource(),
        )
        self.transport = HttpTransport(session)

    @classmethod
    def from_settings(cls, settings: "ClientSettings", **kwargs: Any) -> "IndependentReserveClient":
        return cls(
            settings.api_key.get_secret_value() if settings.api_key else None,
            settings.api_secret.get_secret_value() if settings.api_secret else None,
            settings.server,
            settings.timeout_ms,
            user_agent=settings.user_agent,
            **kwargs,
        )

    @property
    def server(self) -> str:
        return self.builder.server

    @property
    def nonces(self) -> NonceSource:
        return self.builder.nonces

    async def __aenter__(self) -> "IndependentReserveClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close connections."""
        await self.transport.close()

    async def _get(self, action: str, params: Mapping[str, Any] | None = None) -> Result:
        request = self.builder.build_public(action, params)
        return await self.transport.execute(request)

    async def _post(self, action: str, params: Mapping[str, Any] | None = None) -> Result:
        request = self.builder.build_private(action, params)
        return await self.transport.execute(request)

    # Public API

    @_returns_failure
    async def get_valid_primary_currency_codes(self) -> Result:
        return await self._get("GetValidPrimaryCurrencyCodes")

    @_returns_failure
    async def get_valid_secondary_currency_codes(self) -> Result:
        return await self._get("GetValidSecondaryCurrencyCodes")

    @_returns_failure
    async def get_valid_limit_order_types(self) -> Result:
        return await self._get("GetValidLimitOrderTypes")

    @_returns_failure
    async def get_valid_market_order_types(self) -> Result:
        return await self._get("GetValidMarketOrderTypes")

    @_returns_failure
    async def get_market_summary(self, primary_currency_code: str, secondary_currency_code: str) -> Result:
        return await self._get("GetMarketSummary", {
            "primaryCurrencyCode": primary_currency_code,
            "secondaryCurrencyCode": secondary_currency_code,
        })

    @_returns_failure
    async def get_order_book(self, primary_currency_code: str, secondary_currency_code: str) -> Result:
        return await self._get("GetOrderBook", {
            "primaryCurrencyCode": primary_currency_code,
            "secondaryCurrencyCode": secondary_currency_code,
        })

    @_returns_failure
    async def get_recent_trades(
        self,
        primary_currency_code: str,
        secondary_currency_code: str,
        number_of_recent_trades: int,
    ) -> Result:
        return await self._get("GetRecentTrades", {
            "primaryCurrencyCode": primary_currency_code,
            "secondaryCurrencyCode": secondary_currency_code,
            "numberOfRecentTradesToRetrieve": number_of_recent_trades,
        })

    # Private API

    @_returns_failure
    async def place_limit_order(
        self,
        primary_currency_code: str,
        secondary_currency_code: str,
        order_type: OrderType | str,
        price: float,
        volume: float,
    ) -> Result:
        return await self._post("PlaceLimitOrder", {
            "primaryCurrencyCode": primary_currency_code,
            "secondaryCurrencyCode": secondary_currency_code,
            "orderType": _order_type_value(order_type),
            "price": price,
            "volume": volume,
        })

    @_returns_failure
    async def place_market_order(
        self,
        primary_currency_code: str,
        secondary_currency_code: str,
        order_type: OrderType | str,
        volume: float,
    ) -> Result:
        return await self._post("PlaceMarketOrder", {
            "primaryCurrencyCode": primary_currency_code,
            "secondaryCurrencyCode": secondary_currency_code,
            "orderType": _order_type_value(order_type),
            "volume": volume,
        })

    @_returns_failure
    async def place_order(
        self,
        primary_currency_code: str,
        secondary_currency_code: str,
        order_type: OrderType | str,
        price: float | None,
        volume: float,
    ) -> Result:
        """Place a limit or market order depending on ``order_type``.

        ``price`` is ignored for market orders.
        """
        try:
            kind = OrderType(_order_type_value(order_type))
        except ValueError:
            raise ValidationError(
                'orderType parameter must equal "MarketOffer", "MarketBid", "LimitOffer" '
                f'or "LimitBid" - not {order_type}',
                tag=str(order_type),
            ) from None

        if kind.is_market:
            return await self.place_market_order(
                primary_currency_code, secondary_currency_code, kind, volume
            )
        return await self.place_limit_order(
            primary_currency_code, secondary_currency_code, kind, price, volume
        )

    @_returns_failure
    async def cancel_order(self, order_guid: str) -> Result:
        return await self._post("CancelOrder", {"orderGuid": order_guid})

    async def _get_orders(
        self,
        action: str,
        function_name: str,
        primary_currency_code: str,
        secondary_currency_code: str,
        page_index: int,
        page_size: int,
    ) -> Result:
        _check_paging(function_name, page_index, page_size)
        return await self._post(action, {
            "primaryCurrencyCode": primary_currency_code,
            "secondaryCurrencyCode": secondary_currency_code,
            "pageIndex": page_index,
            "pageSize": page_size,
        })

    @_returns_failure
    async def get_open_orders(
        self, primary_currency_code: str, secondary_currency_code: str, page_index: int, page_size: int
    ) -> Result:
        return await self._get_orders(
            "GetOpenOrders", "get_open_orders",
            primary_currency_code, secondary_currency_code, page_index, page_size,
        )

    @_returns_failure
    async def get_closed_orders(
        self, primary_currency_code: str, secondary_currency_code: str, page_index: int, page_size: int
    ) -> Result:
        return await self._get_orders(
            "GetClosedOrders", "get_closed_orders",
            primary_currency_code, secondary_currency_code, page_index, page_size,
        )

    @_returns_failure
    async def get_closed_filled_orders(
        self, primary_currency_code: str, secondary_currency_code: str, page_index: int, page_size: int
    ) -> Result:
        return await self._get_orders(
            "GetClosedFilledOrders", "get_closed_filled_orders",
            primary_currency_code, secondary_currency_code, page_index, page_size,
        )

    @_returns_failure
    async def get_order_details(self, order_guid: str) -> Result:
        return await self._post("GetOrderDetails", {"orderGuid": order_guid})

    @_returns_failure
    async def get_accounts(self) -> Result:
        return await self._post("GetAccounts")

    @_returns_failure
    async def get_transactions(
        self,
        account_guid: str,
        from_timestamp: datetime,
        to_timestamp: datetime | None,
        page_index: int,
        page_size: int,
        tx_types: list[str] | None = None,
    ) -> Result:
        """Fetch account transactions.

        ``to_timestamp`` may be ``None`` to leave the range open; any other
        non-datetime value is rejected.
        """
        if not isinstance(from_timestamp, datetime):
            raise ValidationError(f"get_transactions fromTimestamp {from_timestamp} must be a datetime")
        if to_timestamp is not None and not isinstance(to_timestamp, datetime):
            raise ValidationError(f"get_transactions toTimestamp {to_timestamp} must be None or a datetime")
        _check_paging("get_transactions", page_index, page_size)
        if tx_types is not None and (
            not isinstance(tx_types, (list, tuple)) or not all(isinstance(t, str) for t in tx_types)
        ):
            raise ValidationError(f"get_transactions txTypes {tx_types!r} must be a list of strings")

        params: dict[str, Any] = {
            "accountGuid": account_guid,
            "fromTimestampUtc": to_iso8601(from_timestamp),
        }
        params["pageIndex"] = page_index
        params["pageSize"] = page_size
        if tx_types is not None:
            params["txTypes"] = list(tx_types)
        if to_timestamp is not None:
            params["toTimestampUtc"] = to_iso8601(to_timestamp)

        return await self._post("GetTransactions", params)

    @_returns_failure
    async def get_trades(self, page_index: int, page_size: int) -> Result:
        _check_paging("get_trades", page_index, page_size)
        return await self._post("GetTrades", {"pageIndex": page_index, "pageSize": page_size})

    @_returns_failure
    async def get_digital_currency_deposit_address(self, primary_currency_code: str) -> Result:
        return await self._post("GetDigitalCurrencyDepositAddress", {
            "primaryCurrencyCode": primary_currency_code,
        })

    @_returns_failure
    async def get_digital_currency_deposit_addresses(
        self, primary_currency_code: str, page_index: int, page_size: int
    ) -> Result:
        _check_paging("get_digital_currency_deposit_addresses", page_index, page_size)
        return await self._post("GetDigitalCurrencyDepositAddresses", {
            "primaryCurrencyCode": primary_currency_code,
            "pageIndex": page_index,
            "pageSize": page_size,
        })

    @_returns_failure
    async def synch_digital_currency_deposit_address_with_blockchain(
        self, deposit_address: str, primary_currency_code: str
    ) -> Result:
        return await self._post("SynchDigitalCurrencyDepositAddressWithBlockchain", {
            "depositAddress": deposit_address,
            "primaryCurrencyCode": primary_currency_code,
        })

    @_returns_failure
    async def withdraw_digital_currency(
        self, amount: float, withdrawal_address: str, comment: str, primary_currency_code: str
    ) -> Result:
        """Request a digital currency withdrawal. Succeeds with no data."""
        return await self._post("WithdrawDigitalCurrency", {
            "amount": amount,
            "withdrawalAddress": withdrawal_address,
            "comment": comment,
            "primaryCurrencyCode": primary_currency_code,
        })

    @_returns_failure
    async def request_fiat_withdrawal(
        self, currency: str, withdrawal_amount: float, withdrawal_bank_account_name: str, comment: str
    ) -> Result:
        return await self._post("RequestFiatWithdrawal", {
            "secondaryCurrencyCode": currency,
            "withdrawalAmount": withdrawal_amount,
            "withdrawalBankAccountName": withdrawal_bank_account_name,
            "comment": comment,
        })

    @_returns_failure
    async def get_brokerage_fees(self) -> Result:
        return await self._post("GetBrokerageFees")
