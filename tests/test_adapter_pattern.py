import unittest
from typing import Protocol
from unittest.mock import MagicMock

from lazywire import as_class, as_value, create_container


class Contains:  # noqa: PLW1641
    def __init__(self, substring):
        self.substring = substring

    def __repr__(self):
        return f"Contains({self.substring!r})"

    def __eq__(self, other):
        return isinstance(other, str) and self.substring in other


class PaymentClient(Protocol):
    def charge(self, order_id: str, amount_cents: int) -> None: ...


class NullLogger:
    def info(self, msg: object, *args: object) -> None:
        pass


class StripeSdk:
    def pay(self, amount_usd: float, reference: str) -> bool:
        return True


class StripeAdapter:
    def __init__(self, deps) -> None:
        self._logger = deps.logger
        self._sdk = deps.payments.sdk
        self._usd_per_cent = deps.payments.usd_per_cent

    def charge(self, order_id: str, amount_cents: int) -> None:
        self._logger.info("adapting to stripe sdk api")
        amount_usd = amount_cents * self._usd_per_cent
        ok = self._sdk.pay(amount_usd, reference=order_id)
        if not ok:
            msg = "Stripe payment failed"
            raise RuntimeError(msg)


class TestWiringAdapterThirdPartySDK(unittest.TestCase):
    def setUp(self):
        self.stripe_sdk = StripeSdk()
        self.stripe_sdk.pay = MagicMock(wraps=self.stripe_sdk.pay)
        self.logger = NullLogger()
        self.logger.info = MagicMock(wraps=self.logger.info)
        # callables registered as values so the container hands them out untouched
        self.definition = {
            "logger": as_value(self.logger),
            "payments": {"sdk": as_value(self.stripe_sdk), "usd_per_cent": 0.01},
            "client": as_class(StripeAdapter),
        }

    def test_adapter_calls_adaptee(self):
        client: PaymentClient = create_container(self.definition)["client"]
        client.charge("order-123", 5000)

        assert self.stripe_sdk.pay.call_count == 1
        assert self.stripe_sdk.pay.call_args[0][0] == 0.01 * 5000
        assert self.stripe_sdk.pay.call_args[1]["reference"] == "order-123"

        assert self.logger.info.call_args[0][0] == Contains("stripe sdk")

    def test_adapter_with_overridden_rate(self):
        self.definition["client"] = as_class(
            StripeAdapter,
            mapping={"payments": {"usd_per_cent": as_value(0.0125)}},
        )

        client: PaymentClient = create_container(self.definition)["client"]
        client.charge("order-123", 5000)

        assert self.stripe_sdk.pay.call_args[0][0] == 0.0125 * 5000

    def test_failed_payment_raises(self):
        self.stripe_sdk.pay = MagicMock(return_value=False)
        self.definition["payments"]["sdk"] = as_value(self.stripe_sdk)

        client: PaymentClient = create_container(self.definition)["client"]
        with self.assertRaises(RuntimeError):
            client.charge("order-123", 5000)
