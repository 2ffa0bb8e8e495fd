import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from enielexpress.version import VERSION
from enielexpress.api.v1 import (
    routes_auth,
    routes_invoices,
    routes_payments,
    routes_scan,
    routes_tracking,
    routes_whatsapp,
)
from enielexpress.core.config import settings
from enielexpress.core.errors import register_exception_handlers
from enielexpress.core.logging_config import setup_logging
from enielexpress.services.paystack import PaystackClient
from enielexpress.services.whatsapp import WhatsAppClient

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.messenger = WhatsAppClient.from_settings(settings)
    app.state.payment_gateway = PaystackClient.from_settings(settings)
    if not app.state.messenger.configured:
        logger.warning("WhatsApp credentials missing; notifications will be skipped")
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            logger.debug("%s %s", sorted(route.methods), route.path)
    logger.info("EnielExpress API %s started", VERSION)
    yield
    app.state.messenger.close()
    app.state.payment_gateway.close()
    logger.info("EnielExpress API stopped")


# Create instrumentator first
instrumentator = Instrumentator()

app = FastAPI(title='EnielExpress API', version=VERSION, lifespan=lifespan)

instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint="/api/metrics",
    should_gzip=True,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get('/health')
def health(): return {'status': 'ok'}

@app.get('/api/health')
def api_health(): return {'status': 'ok', 'service': 'enielexpress', 'version': VERSION}

@app.get('/api')
def index():
    return {
        'message': 'P&D EnielExpress API',
        'version': VERSION,
        'endpoints': ['/api/auth', '/api/tracking', '/api/invoices', '/api/payments', '/api/scan', '/api/whatsapp'],
    }


app.include_router(routes_auth.router, prefix='/api/auth', tags=['auth'])
app.include_router(routes_tracking.router, prefix='/api/tracking', tags=['tracking'])
app.include_router(routes_invoices.router, prefix='/api/invoices', tags=['invoices'])
app.include_router(routes_payments.router, prefix='/api/payments', tags=['payments'])
app.include_router(routes_scan.router, prefix='/api/scan', tags=['scan'])
app.include_router(routes_whatsapp.router, prefix='/api/whatsapp', tags=['whatsapp'])
