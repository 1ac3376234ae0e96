"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from nutrition_resolver.api.models import (
    BatchItemResponse,
    BatchResolveRequest,
    CaptureRequest,
    CommitRequest,
    CommitResponse,
    EditRequest,
    ErrorResponse,
    ResolutionResultPayload,
    ResolveRequest,
    ScaledItemPayload,
    ScaleRequest,
)
from nutrition_resolver.app_logging import configure_logging
from nutrition_resolver.containers import AppContainer
from nutrition_resolver.domain.errors import InvalidInputError, ResolutionError
from nutrition_resolver.domain.nutrition import device_capture_result
from nutrition_resolver.domain.quantity import Macro, ScaledItem
from nutrition_resolver.services.quantity import (
    scale_result,
    set_absolute,
    set_amount,
    set_base,
    set_quantity_text,
)

_BASE_PREFIX = "base_"


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(
        _request: Request, exc: InvalidInputError
    ) -> JSONResponse:
        return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))

    @app.exception_handler(ResolutionError)
    async def resolution_error_handler(
        _request: Request, exc: ResolutionError
    ) -> JSONResponse:
        logger.warning("Resolution failed: %s", exc.details)
        return _error_response(status.HTTP_502_BAD_GATEWAY, str(exc), exc.details)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/resolve")
    async def resolve(
        payload: ResolveRequest, request: Request
    ) -> ResolutionResultPayload:
        """Resolve a food name or barcode to a per-100g record."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.resolution_service.resolve(
            payload.food_name_or_barcode
        )
        return ResolutionResultPayload.from_domain(result)

    @app.post("/resolve/batch")
    async def resolve_batch(
        payload: BatchResolveRequest, request: Request
    ) -> list[BatchItemResponse]:
        """Resolve several items concurrently, reporting failures per item."""
        state_container: AppContainer = request.app.state.container
        outcomes = await state_container.resolution_service.resolve_many(
            payload.items
        )
        responses: list[BatchItemResponse] = []
        for query, outcome in zip(payload.items, outcomes, strict=True):
            if isinstance(outcome, Exception):
                responses.append(
                    BatchItemResponse(
                        query=query,
                        error=ErrorResponse(
                            error=str(outcome),
                            details=getattr(outcome, "details", None),
                        ),
                    )
                )
            else:
                responses.append(
                    BatchItemResponse(
                        query=query,
                        result=ResolutionResultPayload.from_domain(outcome),
                    )
                )
        return responses

    @app.post("/capture")
    async def capture(payload: CaptureRequest) -> ResolutionResultPayload:
        """Wrap confirmed barcode or label-photo output as a trusted result."""
        try:
            result = device_capture_result(payload.food.to_domain(), payload.source)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc
        return ResolutionResultPayload.from_domain(result)

    @app.post("/items/scale")
    async def scale_item(payload: ScaleRequest) -> ScaledItemPayload:
        """Scale a resolution result into a log item."""
        try:
            item = scale_result(payload.result.to_domain(), payload.amount)
            if payload.quantity:
                item = set_quantity_text(item, payload.quantity)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc
        return ScaledItemPayload.from_domain(item)

    @app.post("/items/edit")
    async def edit_item(payload: EditRequest) -> ScaledItemPayload:
        """Apply one field edit to a log item."""
        try:
            item = apply_edit(payload.item.to_domain(), payload.field, payload.value)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc
        return ScaledItemPayload.from_domain(item)

    @app.post("/cache/commit")
    async def commit_cache(payload: CommitRequest, request: Request) -> CommitResponse:
        """Persist cache candidates and usage for a saved log entry."""
        state_container: AppContainer = request.app.state.container
        writeback = state_container.cache_writeback_service
        upserted = writeback.upsert_candidates(
            [candidate.to_domain() for candidate in payload.candidates]
        )
        bumped = writeback.bump_usage(payload.cache_hits)
        return CommitResponse(upserted=upserted, usage_bumped=bumped)

    return app


def apply_edit(item: ScaledItem, field: str, value: float | str) -> ScaledItem:
    """Route a field edit through the quantity model."""
    if field == "quantity":
        if not isinstance(value, str):
            raise ValueError('Quantity must be text such as "2 x 1 cup"')
        return set_quantity_text(item, value)
    number = _to_float(value)
    if field == "amount":
        return set_amount(item, number)
    if field.startswith(_BASE_PREFIX):
        return set_base(item, _parse_macro(field.removeprefix(_BASE_PREFIX)), number)
    return set_absolute(item, _parse_macro(field), number)


def _parse_macro(name: str) -> Macro:
    for macro in Macro:
        if name in {macro.value, macro.name.lower()}:
            return macro
    raise ValueError(f"Unknown field: {name}")


def _to_float(value: float | str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


def _error_response(
    status_code: int, error: str, details: str | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(
            exclude_none=True
        ),
    )
