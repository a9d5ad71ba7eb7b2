import logging
from typing import Optional

import razorpay
import requests
from razorpay.errors import BadRequestError, GatewayError, ServerError

from core.errors import PaymentGatewayError
from core.services.payment_provider import PaymentProvider, Order

logger = logging.getLogger(__name__)

GATEWAY_ERRORS = (
    BadRequestError,
    GatewayError,
    ServerError,
    requests.RequestException,
)


class RazorpayPaymentProvider(PaymentProvider):
    """Provider для Razorpay Orders API"""
    def __init__(self, key_id: str, key_secret: str, client: Optional[razorpay.Client] = None):
        if client is None:
            if not key_id or not key_secret:
                raise ValueError("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET must be set")
            client = razorpay.Client(auth=(key_id, key_secret))
        self.client = client

    def create_order(self, amount_minor: int, currency: str, receipt: str) -> Order:
        data = {"amount": int(amount_minor), "currency": currency, "receipt": receipt}
        try:
            return self.client.order.create(data=data)
        except GATEWAY_ERRORS as e:
            logger.warning("Razorpay order create failed for receipt %s: %s", receipt, e)
            raise PaymentGatewayError(str(e)) from e

    def fetch_order(self, order_id: str) -> Order:
        try:
            return self.client.order.fetch(order_id)
        except GATEWAY_ERRORS as e:
            logger.warning("Razorpay order fetch failed for %s: %s", order_id, e)
            raise PaymentGatewayError(str(e)) from e
