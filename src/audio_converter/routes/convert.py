"""Audio conversion endpoint."""

import asyncio
import logging

from fastapi import APIRouter, File, Request, Response, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse

from audio_converter.dependencies import ContainerDep, PipelineDep
from audio_converter.domain import (
    ConversionPipeline,
    ConvertedAudio,
    FailureKind,
    PipelineFailure,
    PipelineResult,
    PipelineStage,
    Transcript,
    UploadedAudio,
)
from audio_converter.response_models import (
    HealthResponse,
    ProblemDetail,
    TranscriptResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["conversion"])

CLIENT_CLOSED_REQUEST = 499

_STAGE_TITLES = {
    PipelineStage.TRANSCODE: "Conversion failed",
    PipelineStage.TRANSCRIBE: "Transcription failed",
    PipelineStage.PERSISTENCE: "Metadata recording failed",
}

_KIND_STATUS = {
    FailureKind.INVALID_UPLOAD: 400,
    FailureKind.UPLOAD_TOO_LARGE: 413,
    FailureKind.TOOL_UNAVAILABLE: 503,
    FailureKind.TOOL_TIMEOUT: 504,
    FailureKind.TOOL_FAILED: 500,
    FailureKind.PERSISTENCE_UNAVAILABLE: 500,
}


@router.post(
    "/convert",
    responses={
        200: {
            "content": {"audio/wav": {}, "application/json": {}},
            "description": "Converted waveform, or a transcript when enabled",
            "model": TranscriptResponse,
        },
        400: {"content": {"text/plain": {}}, "description": "Rejected upload"},
        500: {"model": ProblemDetail, "description": "External tool failed"},
        503: {"model": ProblemDetail, "description": "External tool unavailable"},
        504: {"model": ProblemDetail, "description": "External tool timed out"},
    },
)
async def convert(
    request: Request,
    pipeline: PipelineDep,
    container: ContainerDep,
    file: UploadFile | None = File(None),
) -> Response:
    """
    Converts an uploaded audio file to WAV.

    Returns the waveform bytes, or a JSON transcript when the service runs
    with transcription enabled.
    """
    upload = None
    if file is not None:
        # One byte over the limit is enough for validation to reject it.
        data = await file.read(container.config.upload.max_bytes + 1)
        upload = UploadedAudio(
            filename=file.filename,
            content_type=file.content_type,
            data=data,
        )

    logger.info(
        "Received conversion request",
        extra={
            "request_id": pipeline.request_id,
            "file_name": upload.filename if upload else None,
            "transcription_enabled": pipeline.transcription_enabled,
        },
    )

    result = await _run_until_disconnected(
        request,
        pipeline,
        upload,
        container.config.server.disconnect_poll_seconds,
    )
    if result is None:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    return to_response(result)


@router.get("/health", response_model=HealthResponse)
def health(container: ContainerDep) -> HealthResponse:
    """Reports liveness and the deployment mode."""
    return HealthResponse(
        status="ok",
        transcription_enabled=container.config.recognizer.enabled,
    )


async def _run_until_disconnected(
    request: Request,
    pipeline: ConversionPipeline,
    upload: UploadedAudio | None,
    poll_seconds: float,
) -> PipelineResult | None:
    """
    Runs the pipeline while watching for the client going away.

    Returns None when the client disconnected; the pipeline task is then
    cancelled, which kills any running tool and releases the workspace.

    The disconnect check runs in this coroutine between waits rather than in
    a separate task: is_disconnected() receives inside an anyio cancel scope,
    which would absorb a plain asyncio cancellation of such a task.
    """
    pipeline_task = asyncio.ensure_future(pipeline.run(upload))

    try:
        while not pipeline_task.done():
            await asyncio.wait({pipeline_task}, timeout=poll_seconds)
            if pipeline_task.done():
                break
            if await request.is_disconnected():
                pipeline_task.cancel()
                break
    finally:
        if not pipeline_task.done():
            pipeline_task.cancel()
        await asyncio.gather(pipeline_task, return_exceptions=True)

    if pipeline_task.cancelled():
        logger.info(
            "Client disconnected, conversion aborted",
            extra={"request_id": pipeline.request_id},
        )
        return None
    return pipeline_task.result()


def to_response(result: PipelineResult) -> Response:
    """Maps a pipeline outcome to an HTTP response."""
    if isinstance(result, ConvertedAudio):
        return Response(
            content=result.data,
            media_type=result.media_type,
            headers={
                "Content-Disposition": f'attachment; filename="{result.filename}"',
                "X-Request-ID": result.request_id,
            },
        )

    if isinstance(result, Transcript):
        return JSONResponse(
            content=TranscriptResponse(transcript=result.text).model_dump(),
            headers={"X-Request-ID": result.request_id},
        )

    return _failure_response(result)


def _failure_response(failure: PipelineFailure) -> Response:
    status_code = _KIND_STATUS[failure.kind]

    if failure.stage is PipelineStage.VALIDATION:
        return PlainTextResponse(failure.cause, status_code=status_code)

    problem = ProblemDetail(
        type=f"/problems/{failure.stage.value}",
        title=_STAGE_TITLES[failure.stage],
        status=status_code,
        detail=failure.cause,
        stage=failure.stage.value,
        kind=failure.kind.value,
    )
    headers = {"X-Request-ID": failure.request_id} if failure.request_id else None
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(),
        media_type="application/problem+json",
        headers=headers,
    )
