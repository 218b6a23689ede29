"""Sequential generate-and-submit loop with progress events."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from datetime import datetime, timezone

import httpx

from core.answers.generator import GenerationContext, generate_form_answers
from core.answers.pool import default_answer_pool, load_answer_pool
from core.answers.text_generation import build_text_generator
from core.forms.analyzer import parse_form
from core.forms.models import ParsedForm
from core.orchestrator.models import (
    CompleteEvent,
    ErrorEvent,
    FillEvent,
    FillRequest,
    FillState,
    FillSummary,
    ProgressEvent,
    SubmissionEvent,
    SubmissionOutcome,
)
from core.settings import Settings, load_settings
from core.submit.client import SubmitResult, submit_answers
from core.utils.errors import FormFillError, NoQuestionsError
from core.utils.log_events import log_event

logger = logging.getLogger("formfill.orchestrator")

FormParser = Callable[..., Awaitable[ParsedForm]]
AnswerSubmitter = Callable[..., Awaitable[SubmitResult]]
Sleeper = Callable[[float], Awaitable[None]]


class FillOrchestrator:
    """Drive one fill request: parse once, then generate and submit N times.

    Iterations run strictly in order. Form-level failures end the run with an
    ``ErrorEvent``; a failing iteration is recorded and the loop moves on.
    Closing the event iterator early stops further submissions.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        generation_context: GenerationContext | None = None,
        parser: FormParser = parse_form,
        submitter: AnswerSubmitter = submit_answers,
        sleep: Sleeper = asyncio.sleep,
        run_id: str | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.http_client = http_client
        self.generation_context = generation_context or build_generation_context(self.settings)
        self.parser = parser
        self.submitter = submitter
        self.sleep = sleep
        self.run_id = run_id or uuid.uuid4().hex
        self.state = FillState.PARSING

    async def run(self, request: FillRequest) -> AsyncIterator[FillEvent]:
        started = time.perf_counter()
        total = request.num_responses
        finished = False

        log_event(logger, logging.INFO, "start", self.run_id, total=total)
        try:
            self.state = FillState.PARSING
            yield ProgressEvent(type="status", message="Parsing form...", current=0, total=total)

            form, error = await self._parse(request.form_url)
            if form is None:
                self.state = FillState.FAILED
                finished = True
                yield ErrorEvent(error=error or "Failed to parse form")
                return

            yield ProgressEvent(
                type="status",
                message="Form parsed successfully. Starting submissions...",
                current=0,
                total=total,
            )

            outcomes: list[SubmissionOutcome] = []
            for response_number in range(1, total + 1):
                iteration = self._iterate(request, form, response_number, outcomes)
                async with aclosing(iteration) as events:
                    async for event in events:
                        yield event
                if response_number < total:
                    await self.sleep(self.settings.submit_delay_seconds)

            success_count = sum(1 for outcome in outcomes if outcome.success)
            summary = FillSummary(
                total_requested=total,
                success_count=success_count,
                failed_count=len(outcomes) - success_count,
                submissions=outcomes,
                duration_millis=_elapsed_ms(started),
            )
            self.state = FillState.COMPLETE
            finished = True
            log_event(
                logger,
                logging.INFO,
                "done",
                self.run_id,
                success_count=summary.success_count,
                failed_count=summary.failed_count,
                duration_ms=summary.duration_millis,
            )
            yield CompleteEvent(data=summary)
        finally:
            if not finished:
                log_event(
                    logger,
                    logging.WARNING,
                    "cancelled",
                    self.run_id,
                    state=self.state.value,
                    total_ms=_elapsed_ms(started),
                )

    async def _parse(self, form_url: str) -> tuple[ParsedForm | None, str | None]:
        try:
            form = await self.parser(form_url, client=self.http_client, settings=self.settings)
        except FormFillError as exc:
            log_event(
                logger,
                logging.ERROR,
                "error",
                self.run_id,
                failure_stage="parse",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return None, str(exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("unexpected parse failure")
            return None, f"Failed to parse form: {exc}"

        if not form.questions:
            exc = NoQuestionsError("No questions found in the form", form_id=form.form_id)
            log_event(
                logger,
                logging.ERROR,
                "error",
                self.run_id,
                failure_stage="parse",
                error_type=type(exc).__name__,
                form_id=form.form_id,
            )
            return None, str(exc)

        log_event(
            logger,
            logging.INFO,
            "parsed",
            self.run_id,
            form_id=form.form_id,
            question_count=len(form.questions),
        )
        return form, None

    async def _iterate(
        self,
        request: FillRequest,
        form: ParsedForm,
        response_number: int,
        outcomes: list[SubmissionOutcome],
    ) -> AsyncIterator[FillEvent]:
        total = request.num_responses
        self.state = FillState.GENERATING
        yield ProgressEvent(
            type="progress",
            message=f"Generating response {response_number}...",
            current=response_number - 1,
            total=total,
        )

        answers = None
        error_detail: str | None = None
        try:
            answers = await generate_form_answers(
                form.questions,
                request.user_data,
                request.use_external_generation,
                context=self.generation_context,
            )
        except Exception as exc:  # noqa: BLE001
            error_detail = str(exc) or type(exc).__name__

        if answers is not None:
            self.state = FillState.SUBMITTING
            yield ProgressEvent(
                type="progress",
                message=f"Submitting response {response_number}...",
                current=response_number - 1,
                total=total,
            )
            try:
                result = await self.submitter(
                    form.submit_endpoint,
                    answers,
                    client=self.http_client,
                    settings=self.settings,
                )
            except Exception as exc:  # noqa: BLE001
                result = SubmitResult(success=False, error_detail=str(exc) or type(exc).__name__)
            if not result.success:
                error_detail = result.error_detail or "Submission failed"

        success = error_detail is None
        outcomes.append(
            SubmissionOutcome(
                success=success,
                response_number=response_number,
                timestamp=datetime.now(timezone.utc).isoformat(),
                answers=answers if success else None,
                error_detail=error_detail,
            )
        )
        log_event(
            logger,
            logging.INFO if success else logging.WARNING,
            "submission",
            self.run_id,
            response_number=response_number,
            success=success,
            error=error_detail,
        )
        yield SubmissionEvent(
            success=success,
            response_number=response_number,
            error=error_detail,
            current=response_number,
            total=total,
        )


def build_generation_context(settings: Settings) -> GenerationContext:
    """Load the answer pool and text generator; raises ValueError for a bad pool file."""

    pool = (
        load_answer_pool(settings.answer_pool_path)
        if settings.answer_pool_path is not None
        else default_answer_pool()
    )
    return GenerationContext(
        pool=pool,
        text_generator=build_text_generator(settings),
        generation_timeout_seconds=settings.generation_timeout_seconds,
    )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
