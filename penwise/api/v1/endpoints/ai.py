"""API endpoints for metered AI content generation."""

import json
from typing import AsyncContextManager, AsyncGenerator, Callable, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from penwise import schemas
from penwise.api import deps
from penwise.api.context import ApiContext
from penwise.api.deps import Inject
from penwise.core.protocols import ContentGenerator
from penwise.domains.entitlements.protocols import EntitlementFacadeProtocol
from penwise.domains.rate_limits.types import GENERATION
from penwise.domains.usage.protocols import UsageLedgerProtocol, UsageMeterProtocol
from penwise.domains.usage.types import ResourceKind, build_usage_check

router = APIRouter()


@router.post("/generate", response_model=schemas.GenerateResponse)
async def generate(
    request: schemas.GenerateRequest,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    entitlements: EntitlementFacadeProtocol = Inject(EntitlementFacadeProtocol),
    generator: ContentGenerator = Inject(ContentGenerator),
    ledger: UsageLedgerProtocol = Inject(UsageLedgerProtocol),
    meter: UsageMeterProtocol = Inject(UsageMeterProtocol),
) -> schemas.GenerateResponse:
    """Generate content for the prompt.

    Order: rate limit, quota, provider call, then one ledger entry. Nothing
    is recorded when the provider fails.
    """
    decision = await entitlements.evaluate(
        db,
        user_id=ctx.user_id,
        client_address=ctx.client_address,
        resource_kind=ResourceKind.GENERATION,
        plan=ctx.plan,
        rate_limit_policy=GENERATION,
    )
    decision.raise_for_denial()

    result = await generator.generate(
        request.prompt, template=request.template, options=request.options
    )

    await ledger.record(
        db,
        ctx.user_id,
        ResourceKind.GENERATION,
        cost=result.cost,
        details={
            "endpoint": "/ai/generate",
            "model": result.model,
            "tokens": result.tokens_used,
            "template": request.template,
        },
    )
    ctx.logger.info(f"Generated content with {result.model} ({result.tokens_used} tokens)")

    usage = decision.usage
    if usage is None:
        usage = await meter.check(db, ctx.user_id, ResourceKind.GENERATION, plan=decision.plan)
    elif not usage.is_unlimited:
        usage = build_usage_check(usage.current + 1, usage.limit)

    return schemas.GenerateResponse(
        content=result.content,
        model=result.model,
        tokens_used=result.tokens_used,
        usage=usage,
    )


@router.post("/stream")
async def stream_generate(
    request: schemas.GenerateRequest,
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    entitlements: EntitlementFacadeProtocol = Inject(EntitlementFacadeProtocol),
    generator: ContentGenerator = Inject(ContentGenerator),
    ledger: UsageLedgerProtocol = Inject(UsageLedgerProtocol),
    session_factory: Callable[[], AsyncContextManager[AsyncSession]] = Depends(
        deps.get_session_factory
    ),
) -> StreamingResponse:
    """Stream generated content as Server-Sent Events.

    Admission is the same as ``/generate``. The ledger entry is written only
    after the provider finished; a stream that fails part way records nothing
    and ends with an ``error`` event instead of ``done``.
    """
    decision = await entitlements.evaluate(
        db,
        user_id=ctx.user_id,
        client_address=ctx.client_address,
        resource_kind=ResourceKind.GENERATION,
        plan=ctx.plan,
        rate_limit_policy=GENERATION,
    )
    decision.raise_for_denial()

    # Provider failures before the first chunk still surface as a 503
    chunks = generator.stream(request.prompt, template=request.template, options=request.options)
    first = await anext(chunks, None)

    async def event_stream() -> AsyncGenerator[str, None]:
        model: Optional[str] = None
        tokens = 0
        cost: Optional[float] = None
        chunk = first
        try:
            while chunk is not None:
                model = chunk.model or model
                if chunk.tokens_used is not None:
                    tokens = chunk.tokens_used
                if chunk.cost is not None:
                    cost = chunk.cost
                if chunk.text:
                    yield f"data: {json.dumps({'text': chunk.text})}\n\n"
                chunk = await anext(chunks, None)
        except Exception as e:  # noqa: BLE001 (stream already started)
            ctx.logger.error(f"[AiStream] Generation failed mid-stream: {e}")
            yield f"data: {json.dumps({'error': 'Generation failed'})}\n\n"
            return

        try:
            async with session_factory() as stream_db:
                await ledger.record(
                    stream_db,
                    ctx.user_id,
                    ResourceKind.GENERATION,
                    cost=cost,
                    details={
                        "endpoint": "/ai/stream",
                        "model": model,
                        "tokens": tokens,
                        "template": request.template,
                    },
                )
        except Exception as e:  # noqa: BLE001 (stream already started)
            ctx.logger.error(f"[AiStream] Failed to record usage: {e}")
            yield f"data: {json.dumps({'error': 'Failed to record usage'})}\n\n"
            return

        ctx.logger.info(f"Streamed content with {model} ({tokens} tokens)")
        yield f"data: {json.dumps({'done': True, 'model': model, 'tokens_used': tokens})}\n\n"

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/usage", response_model=schemas.GenerationUsage)
async def get_usage(
    db: AsyncSession = Depends(deps.get_db),
    ctx: ApiContext = Depends(deps.get_context),
    meter: UsageMeterProtocol = Inject(UsageMeterProtocol),
) -> schemas.GenerationUsage:
    """AI generation usage: this month against the quota, all time, and per model."""
    return await meter.get_generation_usage(db, ctx.user_id, plan=ctx.plan)
