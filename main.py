import logging
import os
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import LOG_LEVEL
from utils import api_routes
from utils.auth import JWTAuthMiddleware

api_router = api_routes.router


def create_app() -> FastAPI:
    # Setup logging
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
        ]
    )
    logger = logging.getLogger(__name__)

    app = FastAPI(
        title="Alumni Event Report API",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error"},
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info("%s %s -> %s (%.0f ms)", request.method, request.url.path,
                    response.status_code, (time.perf_counter() - started) * 1000)
        return response

    # JWT authentication middleware
    app.add_middleware(JWTAuthMiddleware)

    # CORS configuration
    allowed_origins = [
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]
    extra_origin = os.getenv("FRONTEND_ORIGIN")
    if extra_origin and extra_origin not in allowed_origins and extra_origin != "*":
        allowed_origins.append(extra_origin)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Report-Record-Id", "X-Report-Persistence"],
    )

    # Include consolidated API router
    app.include_router(api_router)

    @app.on_event("startup")
    async def startup_event():
        """Verify fonts at startup"""
        try:
            from reportlab.pdfbase import pdfmetrics
            from utils.formatters import EMPTY_STAR, FILLED_STAR
            from utils.pdf_utils import DEFAULT_FONT_NAME, register_unicode_font, supports_glyphs

            unicode_font = register_unicode_font()
            registered_fonts = pdfmetrics.getRegisteredFontNames()
            logger.info("PDF Fonts: %s fonts registered, default %s", len(registered_fonts), DEFAULT_FONT_NAME)
            if unicode_font and supports_glyphs(unicode_font, FILLED_STAR + EMPTY_STAR):
                logger.info("PDF Fonts: %s draws rating stars", unicode_font)
            else:
                logger.warning("PDF Fonts: no star glyphs available, PDF ratings print as n/5")
        except Exception as e:
            logger.warning("PDF Fonts: Could not verify fonts at startup: %s", e)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "alumni-event-reports"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
