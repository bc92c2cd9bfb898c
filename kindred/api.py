import argparse
import json
import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from kindred.config import Settings
from kindred.model import ErrorResponse, GenerateResponse
from kindred.relay import INTERNAL_ERROR, Err, ErrorKind, Ok, Relay, Result

logger = logging.getLogger(__name__)

BANNER_RULE = "-" * 40


def parse_cli_args(argv=None):
    """Parses command-line arguments. Unset flags keep the environment's value."""
    parser = argparse.ArgumentParser(
        description="Kindred relay server for the Gemini generation API"
    )
    parser.add_argument("--host", type=str, default=None, help="Host address to bind (env: HOST)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (env: PORT)")
    parser.add_argument("--model", type=str, default=None, help="Gemini model id (env: GEMINI_MODEL)")
    parser.add_argument("--temperature", type=float, default=None, help="Generation temperature")
    parser.add_argument(
        "--max_output_tokens",
        type=int,
        default=None,
        help="Maximum number of tokens to generate",
    )
    parser.add_argument(
        "--static_dir",
        type=str,
        default=None,
        help="Directory served at / (env: KINDRED_STATIC_DIR)",
    )
    parser.add_argument("--log_level", type=str, default=None, help="Logging level (env: LOG_LEVEL)")
    return parser.parse_args(argv)


def to_response(result: Result) -> JSONResponse:
    if isinstance(result, Ok):
        return JSONResponse(GenerateResponse(text=result.text).model_dump(), status_code=result.status_code)
    return JSONResponse(result.to_dict(), status_code=result.status_code)


def log_banner(settings: Settings) -> None:
    logger.info(BANNER_RULE)
    logger.info("KINDRED SERVER IS RUNNING")
    logger.info(f"http://{settings.host}:{settings.port}")
    logger.info(f"Model: {settings.model}")
    if not settings.api_key:
        logger.warning("GEMINI_API_KEY is not set; /api/generate will answer with 500")
    logger.info(BANNER_RULE)


def create_app(settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """
    Builds the FastAPI app.

    Args:
        settings: Configuration to serve with. Read from the environment if omitted.
        transport: Optional httpx transport for the outbound client, used to stub Gemini.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # No timeout: a slow generation is left to finish or fail on its own.
        async with httpx.AsyncClient(timeout=None, transport=transport) as client:
            app.state.relay = Relay(settings, client)
            log_banner(settings)
            yield

    app = FastAPI(title="Kindred", lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post(
        "/api/generate",
        response_model=GenerateResponse,
        responses={
            400: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
            502: {"model": ErrorResponse},
        },
    )
    async def generate(request: Request):
        raw = await request.body()
        try:
            body = json.loads(raw) if raw.strip() else {}
        except ValueError as e:
            logger.error(f"Could not decode request body: {e}")
            return to_response(Err(ErrorKind.UNEXPECTED, INTERNAL_ERROR, message=str(e)))
        result = await request.app.state.relay.handle(body)
        return to_response(result)

    @app.get("/health")
    async def health_check():
        """Basic health check endpoint."""
        return {
            "status": "ok",
            "model": settings.model,
            "api_key_configured": bool(settings.api_key),
        }

    # Mounted last so the API routes above take precedence over files.
    if settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="public")
    else:
        logger.warning(f"Static directory {settings.static_dir} not found; UI will not be served")

    return app


def main(argv=None):
    load_dotenv()
    cli_args = parse_cli_args(argv)
    settings = Settings.from_env().override(
        host=cli_args.host,
        port=cli_args.port,
        model=cli_args.model,
        temperature=cli_args.temperature,
        max_output_tokens=cli_args.max_output_tokens,
        static_dir=cli_args.static_dir,
        log_level=cli_args.log_level.upper() if cli_args.log_level else None,
    )
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
