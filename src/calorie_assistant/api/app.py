"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import TypeVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from calorie_assistant.api.models import CalorieRequest, CalorieResponse
from calorie_assistant.app_logging import configure_logging
from calorie_assistant.containers import AppContainer
from calorie_assistant.errors import (
    ConfigurationError,
    ConversationBudgetExceeded,
    ExternalServiceError,
    ValidationError,
)

_T = TypeVar("_T")

_DISCONNECT_POLL_SECONDS = 0.25
_CLIENT_CLOSED_REQUEST = 499


class ClientDisconnectedError(Exception):
    """The HTTP client went away before the response was ready."""


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/ai/calories", response_model=CalorieResponse)
    async def estimate_calories(
        body: CalorieRequest, request: Request
    ) -> CalorieResponse | Response:
        """Estimate calories and macros for a meal description."""
        state_container: AppContainer = request.app.state.container
        history = [
            (entry.role, entry.content) for entry in body.conversation_history or []
        ]
        try:
            result = await _cancel_on_disconnect(
                request,
                state_container.estimation_service.estimate(body.message, history),
            )
        except ValidationError:
            return _error(status.HTTP_400_BAD_REQUEST, "Message is required")
        except ConfigurationError:
            logger.error("Chat service credential is not configured")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "API key not configured")
        except ConversationBudgetExceeded as exc:
            logger.warning("Calorie estimation stopped: %s limit reached", exc.reason)
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "The assistant could not finish the estimate. Please try again.",
                code=exc.error_code,
            )
        except ClientDisconnectedError:
            logger.info("Client disconnected; estimation cancelled")
            return Response(status_code=_CLIENT_CLOSED_REQUEST)
        except ExternalServiceError as exc:
            logger.exception("Chat service call failed", extra={"service": exc.service})
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to get AI response")
        except Exception:
            logger.exception("Calorie estimation failed")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to get AI response")
        return CalorieResponse.from_result(result)

    return app


async def _cancel_on_disconnect(request: Request, work: Awaitable[_T]) -> _T:
    """Await work, cancelling it if the client disconnects first."""
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=_DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                raise ClientDisconnectedError
    finally:
        if not task.done():
            task.cancel()


def _error(status_code: int, message: str, code: str | None = None) -> JSONResponse:
    """Return the JSON error envelope without internal detail."""
    content: dict[str, str] = {"error": message}
    if code is not None:
        content["code"] = code
    return JSONResponse(status_code=status_code, content=content)
