"""NowPayments gateway client for booster package invoices."""

import json
import urllib.error
import urllib.request

import structlog

from config import NowPaymentsSettings, get_settings
from pacrewards.services.errors import PaymentGatewayError
from pacrewards.services.schemas.network import InvoiceReceipt, InvoiceSpec

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class NowPaymentsClient:
    """Creates hosted invoices; settlement arrives later via callback."""

    def __init__(self, settings: NowPaymentsSettings | None = None) -> None:
        self.settings: NowPaymentsSettings = settings or get_settings().nowpayments

    def _invoice_body(self, spec: InvoiceSpec) -> dict[str, object]:
        body: dict[str, object] = {
            "price_amount": spec.price_amount,
            "price_currency": spec.price_currency,
            "order_id": spec.order_id,
            "order_description": spec.order_description,
        }
        for key in ("ipn_callback_url", "success_url", "cancel_url"):
            value: str = getattr(self.settings, key)
            if value:
                body[key] = value
        return body

    def create_payment(self, spec: InvoiceSpec) -> InvoiceReceipt:
        req = urllib.request.Request(
            f"{self.settings.api_url.rstrip('/')}/invoice",
            data=json.dumps(self._invoice_body(spec)).encode(),
            method="POST",
        )
        req.add_header("Content-Type", "application/json")
        req.add_header("x-api-key", self.settings.api_key)

        try:
            with urllib.request.urlopen(req, timeout=self.settings.timeout) as resp:
                data: object = json.loads(resp.read().decode())
        except urllib.error.HTTPError as e:
            raise PaymentGatewayError(f"NowPayments returned HTTP {e.code}") from e
        except (urllib.error.URLError, TimeoutError, ValueError) as e:
            raise PaymentGatewayError(f"NowPayments request failed: {e}") from e

        if not isinstance(data, dict) or not data.get("id"):
            message: object = data.get("message") if isinstance(data, dict) else None
            raise PaymentGatewayError(str(message or "NowPayments did not return an invoice"))

        receipt = InvoiceReceipt(
            invoice_id=str(data["id"]),
            invoice_url=str(data.get("invoice_url") or ""),
        )
        logger.info("Invoice created", order_id=spec.order_id, invoice_id=receipt.invoice_id)
        return receipt
