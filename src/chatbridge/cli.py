"""CLI entry point for chatbridge.

Provides a ``generate`` sub-command that sends a conversation to the
configured chat-completions backend, using Click and Rich for output.

Usage::

    chatbridge generate "Write a haiku about rivers" --stream
    chatbridge generate "And another" --history chat.json --model gpt-4o-mini
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from chatbridge.llm.config import GeneratorSettings
from chatbridge.llm.errors import SDKError
from chatbridge.llm.generator import ChatCompletionsGenerator
from chatbridge.llm.models import (
    Content,
    FunctionCallPart,
    FunctionResponsePart,
    GenerateContentParameters,
    InlineDataPart,
    Part,
    TextPart,
)
from chatbridge.llm.streaming import ResponseAccumulator

console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _part_from_dict(data: dict[str, Any]) -> Part:
    if "text" in data:
        return TextPart(text=str(data["text"]))
    if "inline_data" in data:
        blob = data["inline_data"] or {}
        return InlineDataPart(
            mime_type=blob.get("mime_type", "application/octet-stream")
        )
    if "function_call" in data:
        call = data["function_call"] or {}
        return FunctionCallPart(name=call.get("name", ""), args=call.get("args", {}))
    if "function_response" in data:
        resp = data["function_response"] or {}
        return FunctionResponsePart(
            name=resp.get("name", ""), response=resp.get("response", {})
        )
    raise ValueError(f"Unrecognised part: {sorted(data)}")


def load_history(path: str | Path) -> list[Content]:
    """Load prior turns from a JSON file.

    The file holds a list of ``{"role": ..., "parts": [{"text": ...}]}``
    objects; ``{"role": ..., "text": ...}`` is accepted as shorthand.

    Raises:
        ValueError: If the file is not a list of turn objects.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError("History file must contain a JSON list of turns")
    turns: list[Content] = []
    for item in data:
        if not isinstance(item, dict):
            raise ValueError(f"Each turn must be an object, got {item!r}")
        if "text" in item and "parts" not in item:
            parts: list[Part] = [TextPart(text=str(item["text"]))]
        else:
            parts = [_part_from_dict(p) for p in item.get("parts", [])]
        turns.append(Content(role=item.get("role", "user"), parts=parts))
    return turns


def _build_generator(
    env_file: str | None, model: str | None, base_url: str | None
) -> ChatCompletionsGenerator:
    settings = GeneratorSettings.from_env(env_file)
    return ChatCompletionsGenerator(settings=settings, model=model, base_url=base_url)


async def _generate(
    generator: ChatCompletionsGenerator,
    request: GenerateContentParameters,
    stream: bool,
) -> None:
    async with generator:
        if not stream:
            response = await generator.generate_content(request)
            console.print(response.text, markup=False, highlight=False)
            _print_finish(response.finish_reason)
            return

        accumulator = ResponseAccumulator()
        responses = await generator.generate_content_stream(request)
        async for response in responses:
            accumulator.process(response)
            console.print(response.text, end="", markup=False, highlight=False)
        console.print()
        _print_finish(accumulator.to_response().finish_reason)


def _print_finish(finish_reason: str | None) -> None:
    if finish_reason:
        console.print(f"[dim]finish reason: {finish_reason}[/dim]")


@click.group()
@click.version_option(package_name="chatbridge")
def main() -> None:
    """chatbridge — generic content generation over chat-completions APIs."""


@main.command()
@click.argument("prompt", nargs=-1, required=True)
@click.option("--model", default=None, help="Model id (overrides OPENAI_MODEL).")
@click.option("--base-url", default=None, help="API root (overrides OPENAI_BASE_URL).")
@click.option("--stream/--no-stream", default=False, help="Print deltas as they arrive.")
@click.option(
    "--history",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with prior turns to send before the prompt.",
)
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Dotenv file to read OPENAI_* settings from.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def generate(
    prompt: tuple[str, ...],
    model: str | None,
    base_url: str | None,
    stream: bool,
    history: str | None,
    env_file: str | None,
    verbose: bool,
) -> None:
    """Send PROMPT (after any history) and print the reply."""
    _setup_logging(verbose)

    turns: list[Content] = []
    if history:
        try:
            turns = load_history(history)
        except ValueError as exc:
            console.print(f"[red]Failed to load history:[/red] {escape(str(exc))}")
            raise SystemExit(1) from exc
    turns.append(Content.user(" ".join(prompt)))

    try:
        generator = _build_generator(env_file, model, base_url)
        asyncio.run(
            _generate(generator, GenerateContentParameters(contents=turns), stream)
        )
    except SDKError as exc:
        console.print(
            f"[red]{type(exc).__name__}:[/red] {escape(str(exc))}", highlight=False
        )
        raise SystemExit(1) from exc


@main.command()
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Dotenv file to read OPENAI_* settings from.",
)
def config(env_file: str | None) -> None:
    """Show the resolved connection settings (the API key is masked)."""
    try:
        settings = GeneratorSettings.from_env(env_file)
    except SDKError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise SystemExit(1) from exc

    key = settings.api_key
    masked = f"{key[:3]}…{key[-4:]}" if len(key) > 8 else ("set" if key else "")

    table = Table(title="Connection Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("api_key", masked or "[red]missing[/red]")
    table.add_row("base_url", settings.base_url)
    table.add_row("model", settings.model or "[yellow](empty)[/yellow]")
    table.add_row("timeout", f"{settings.timeout:g}s")
    console.print(table)


if __name__ == "__main__":
    main()
