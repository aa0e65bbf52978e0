# writique/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from svix.webhooks import Webhook
from tortoise.exceptions import ValidationError as FieldValidationError

from writique.config import settings
from writique.core.bootstrap import promote_bootstrap_admins
from writique.core.db import close_db, init_db
from writique.core.errors import ErrorKind, ValidationError, WritiqueError
from writique.core.identity import ClerkIdentityVerifier
from writique.services.media_relay import CloudinaryMediaRelay

from writique.api.v1.routers import admin, posts, users, webhooks

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s - %(filename)s:%(lineno)d",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# LOG_LEVEL only applies to the API's own loggers
logging.getLogger("writique").setLevel(settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WritiqueError)
async def writique_error_handler(request: Request, exc: WritiqueError):
    if exc.kind in (ErrorKind.INTERNAL, ErrorKind.UPSTREAM):
        logger.error("%s %s -> %s %s", request.method, request.url.path, exc.kind.value, exc.code)
    else:
        logger.info("%s %s -> %s %s", request.method, request.url.path, exc.kind.value, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Render framework validation failures in the same envelope as our own
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = f"{field}: {first.get('msg')}" if field else "Invalid request"
    return await writique_error_handler(request, ValidationError(message=message))


@app.exception_handler(FieldValidationError)
async def field_validation_handler(request: Request, exc: FieldValidationError):
    # Values the ORM refuses to store are rendered as 400
    logger.warning("%s %s -> rejected by model validation: %s", request.method, request.url.path, exc)
    return await writique_error_handler(request, ValidationError(message="Invalid field value"))


@app.on_event("startup")
async def on_startup():
    missing = settings.missing_required()
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    await init_db()
    # Users already in the directory get promoted if they were added to the allow-list later
    await promote_bootstrap_admins(settings.bootstrap_admin_ids)

    app.state.identity_verifier = ClerkIdentityVerifier(
        secret_key=settings.clerk_secret_key,
        api_url=settings.clerk_api_url,
        jwks_url=settings.clerk_jwks_url,
        authorized_parties=settings.clerk_authorized_parties,
        timeout=settings.identity_timeout_seconds,
    )
    app.state.media_relay = CloudinaryMediaRelay(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        folder=settings.cloudinary_folder,
        timeout=settings.media_upload_timeout_seconds,
    )
    if not app.state.media_relay.is_available():
        logger.warning("[startup] Cloudinary is not configured; image file uploads will fail")
    app.state.webhook_verifier = Webhook(settings.clerk_webhook_secret)
    logger.info("[startup] %s ready (env=%s)", settings.APP_NAME, settings.env)


@app.on_event("shutdown")
async def on_shutdown():
    await close_db()


# REST
app.include_router(posts.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(webhooks.router, prefix="/api/v1")


@app.get("/healthz")
def healthz():
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
