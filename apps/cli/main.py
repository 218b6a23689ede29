"""Typer CLI entrypoint for formfill-agent."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Annotated, Any

import httpx
import typer
import uvicorn

from apps.cli.remote import (
    DEFAULT_API_CANDIDATES,
    ApiDiscoveryError,
    discover_api_base,
    stream_fill,
)
from core.forms.analyzer import parse_form
from core.forms.models import ParsedForm, UserData
from core.orchestrator.fill import FillOrchestrator
from core.orchestrator.models import FillRequest
from core.settings import Settings, load_settings
from core.utils.errors import FormFillError

app = typer.Typer(help="Google Form auto-fill CLI", rich_markup_mode=None)

EXIT_OK = 0
EXIT_FORM_ERROR = 1
EXIT_PARTIAL_FAILURE = 2


@app.callback()
def cli_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log pipeline events.")] = False,
) -> None:
    """Parse forms and submit generated responses."""

    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("parse")
def parse_command(
    form_url: Annotated[str, typer.Argument(help="Form URL to parse.")],
    as_json: Annotated[bool, typer.Option("--json", help="Print the parsed form as JSON.")] = False,
) -> None:
    """Parse a form and list its questions."""

    settings = load_settings()
    try:
        parsed = asyncio.run(_parse(form_url, settings))
    except FormFillError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=EXIT_FORM_ERROR) from exc

    if as_json:
        typer.echo(
            json.dumps(
                parsed.model_dump(mode="json", by_alias=True, exclude_none=True),
                ensure_ascii=False,
                indent=2,
            )
        )
        return

    typer.echo(f"{parsed.title or parsed.form_id} ({len(parsed.questions)} questions)")
    for question in parsed.questions:
        marker = "*" if question.required else " "
        typer.echo(f"{marker} {question.id} [{question.kind.value}] {question.label}")
        typer.echo(f"    key: {question.field_key}")
        if question.options:
            typer.echo(f"    options: {', '.join(question.options)}")


@app.command("fill")
def fill_command(
    form_url: Annotated[str, typer.Argument(help="Form URL to fill.")],
    count: Annotated[int, typer.Option("--count", "-n", min=1, help="Responses to submit.")] = 1,
    no_ai: Annotated[
        bool, typer.Option("--no-ai", help="Use canned text instead of generated text.")
    ] = False,
    name: Annotated[str | None, typer.Option(help="Answer for name questions.")] = None,
    email: Annotated[str | None, typer.Option(help="Answer for email questions.")] = None,
) -> None:
    """Generate and submit responses in-process."""

    settings = load_settings()
    if count > settings.max_responses:
        typer.echo(f"ERROR: --count must be at most {settings.max_responses}.")
        raise typer.Exit(code=EXIT_FORM_ERROR)

    request = FillRequest(
        form_url=form_url,
        num_responses=count,
        user_data=_user_data(name, email),
        use_external_generation=not no_ai,
    )
    exit_code = asyncio.run(_consume(_local_events(request, settings)))
    raise typer.Exit(code=exit_code)


@app.command("remote")
def remote_command(
    form_url: Annotated[str, typer.Argument(help="Form URL to fill.")],
    count: Annotated[int, typer.Option("--count", "-n", min=1, help="Responses to submit.")] = 1,
    api_url: Annotated[
        str | None, typer.Option("--api-url", help="API base URL, tried before the defaults.")
    ] = None,
    no_ai: Annotated[
        bool, typer.Option("--no-ai", help="Use canned text instead of generated text.")
    ] = False,
    name: Annotated[str | None, typer.Option(help="Answer for name questions.")] = None,
    email: Annotated[str | None, typer.Option(help="Answer for email questions.")] = None,
) -> None:
    """Drive a running API server and follow its progress stream."""

    candidates = [api_url, *DEFAULT_API_CANDIDATES] if api_url else list(DEFAULT_API_CANDIDATES)
    payload: dict[str, Any] = {"formUrl": form_url, "numResponses": count, "useAI": not no_ai}
    user_data = _user_data(name, email)
    if user_data is not None:
        payload["userData"] = user_data.model_dump(by_alias=True, exclude_none=True)

    try:
        exit_code = asyncio.run(_consume_remote(candidates, payload))
    except ApiDiscoveryError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=EXIT_FORM_ERROR) from exc
    raise typer.Exit(code=exit_code)


@app.command("serve")
def serve_command(
    host: Annotated[str, typer.Option()] = "127.0.0.1",
    port: Annotated[int, typer.Option()] = 5000,
) -> None:
    """Run the HTTP API."""

    uvicorn.run("apps.api.main:app", host=host, port=port)


async def _parse(form_url: str, settings: Settings) -> ParsedForm:
    return await parse_form(form_url, settings=settings)


def _build_orchestrator(settings: Settings, client: httpx.AsyncClient) -> FillOrchestrator:
    return FillOrchestrator(settings=settings, http_client=client)


async def _local_events(
    request: FillRequest, settings: Settings
) -> AsyncIterator[dict[str, Any]]:
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        orchestrator = _build_orchestrator(settings, client)
        async for event in orchestrator.run(request):
            yield event.to_wire()


async def _consume_remote(candidates: list[str], payload: dict[str, Any]) -> int:
    async with httpx.AsyncClient(timeout=None) as client:
        base_url = await discover_api_base(candidates, client=client)
        typer.echo(f"INFO: using API at {base_url}")
        return await _consume(stream_fill(base_url, payload, client=client))


async def _consume(events: AsyncIterator[dict[str, Any]]) -> int:
    """Print events and map the terminal one to an exit code."""

    exit_code = EXIT_FORM_ERROR
    async for event in events:
        line = render_event(event)
        if line:
            typer.echo(line)
        if event.get("type") == "complete":
            failed = event.get("data", {}).get("failedCount", 0)
            exit_code = EXIT_PARTIAL_FAILURE if failed else EXIT_OK
        elif event.get("type") == "error":
            exit_code = EXIT_FORM_ERROR
    return exit_code


def render_event(event: dict[str, Any]) -> str | None:
    event_type = event.get("type")
    if event_type in {"status", "progress"}:
        return f"[{event.get('current')}/{event.get('total')}] {event.get('message')}"
    if event_type == "submission":
        number = event.get("responseNumber")
        if event.get("success"):
            return f"  response {number}: submitted"
        return f"  response {number}: FAILED ({event.get('error') or 'unknown error'})"
    if event_type == "complete":
        data = event.get("data", {})
        return (
            f"Done: {data.get('successCount')}/{data.get('totalRequested')} succeeded, "
            f"{data.get('failedCount')} failed in {data.get('durationMillis')} ms"
        )
    if event_type == "error":
        return f"ERROR: {event.get('error')}"
    return None


def _user_data(name: str | None, email: str | None) -> UserData | None:
    if name is None and email is None:
        return None
    return UserData(name=name, email=email)


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
