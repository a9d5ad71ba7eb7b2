import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.plans import load_plans
from config.settings import settings
from core.services.payment_provider import PaymentProvider
from infrastructure.db.sqlite import init_db
from infrastructure.payments.stub_provider import StubPaymentProvider
from infrastructure.web.controllers.payment_controller import router as payment_router
from infrastructure.web.controllers.user_controller import router as user_router
from infrastructure.web.errors import register_exception_handlers

logger = logging.getLogger(__name__)

app = FastAPI(title="Credits service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],  # Allows all HTTP methods (GET, POST, PUT, DELETE, etc.)
    allow_headers=["*"],  # Allows all headers
)

register_exception_handlers(app)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

def build_payment_provider() -> PaymentProvider:
    name = settings.PAYMENT_PROVIDER.lower().strip()
    if name == "stub":
        logger.warning("Using stub payment provider, no real charges will be made")
        return StubPaymentProvider()
    if name == "razorpay":
        # SDK грузим только когда он реально нужен
        from infrastructure.payments.razorpay_provider import RazorpayPaymentProvider
        return RazorpayPaymentProvider(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
    raise ValueError(f"Unknown PAYMENT_PROVIDER: {settings.PAYMENT_PROVIDER}")

@app.on_event("startup")
def on_startup():
    configure_logging()
    init_db(settings.DB_PATH)
    app.state.plans = load_plans(settings.PLANS)
    # тесты могут подложить свой шлюз до старта
    if getattr(app.state, "payment_provider", None) is None:
        app.state.payment_provider = build_payment_provider()
    logger.info("Started with plans %s, currency %s", ", ".join(app.state.plans), settings.CURRENCY)

@app.get("/")
def root():
    return {"success": True, "message": "API working"}

app.include_router(user_router)
app.include_router(payment_router)


if __name__ == "__main__":
    configure_logging()
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)
