# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""VastuFlow command line interface."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from vastuflow.agent.debug_logger import configure_logging_levels
from vastuflow.agent.orchestrator import ConversationOrchestrator
from vastuflow.agent.parameter_normalizer import ParameterNormalizer, build_directive
from vastuflow.agent.types import FallbackEvent, ToolCallEvent, TurnResult
from vastuflow.config.settings import Settings
from vastuflow.core.errors import ConfigurationError, TurnFailedError
from vastuflow.providers.base import Message, Role

app = typer.Typer(
    name="vastuflow",
    help="Vastu-aware floor plan design assistant for local LLM servers",
    add_completion=False,
)

console = Console()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
    configure_logging_levels(level)


def _load_settings(config: Optional[Path], **overrides: object) -> Settings:
    try:
        settings = Settings.from_yaml(config)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    updates = {k: v for k, v in overrides.items() if v is not None}
    if updates:
        settings = settings.model_copy(update=updates)
    return settings


def _describe_event(event: object) -> str:
    if isinstance(event, ToolCallEvent):
        result = event.result
        if result.succeeded:
            rooms = result.payload.get("rooms")
            count = len(rooms) if isinstance(rooms, list) else 0
            solver = result.payload.get("solver") or result.payload.get("solver_type") or "hybrid"
            return f"[green]✓ {event.request.tool_name}: {count} rooms ({solver} solver)[/green]"
        return f"[red]✗ {event.request.tool_name}: {result.error_message}[/red]"
    if isinstance(event, FallbackEvent):
        style = "yellow" if event.succeeded else "red"
        return f"[{style}]⚡ {event.message}[/{style}]"
    return str(event)


async def _run_turn(
    orchestrator: ConversationOrchestrator, previous: List[Message], user_text: str
) -> TurnResult:
    messages = orchestrator.prepare_messages(previous, user_text)
    turn = orchestrator.start_turn(messages, user_text=user_text)

    async def show_events() -> None:
        async for event in turn.tool_events():
            console.print(_describe_event(event))

    events_task = asyncio.create_task(show_events())
    streamed = False
    async for delta in turn.text_deltas():
        streamed = True
        console.print(delta.text, end="", style="dim", markup=False, highlight=False)
    if streamed:
        console.print()  # New line at end
    await events_task
    return await turn.result()


async def _chat(settings: Settings, message: Optional[str]) -> None:
    orchestrator = ConversationOrchestrator.from_settings(settings)
    history: List[Message] = []
    try:
        while True:
            user_text = message
            if user_text is None:
                try:
                    user_text = console.input("\n[bold cyan]You:[/bold cyan] ")
                except (EOFError, KeyboardInterrupt):
                    console.print("\n[yellow]Goodbye![/yellow]")
                    return
                if not user_text.strip():
                    continue

            try:
                result = await _run_turn(orchestrator, history, user_text)
            except TurnFailedError as e:
                console.print(f"[red]Failed to generate response. Please try again.[/red] [dim]({e.message})[/dim]")
                if message is not None:
                    raise typer.Exit(1)
                continue

            history.append(Message(role=Role.USER, content=user_text))
            history.append(Message(role=Role.ASSISTANT, content=result.text))
            console.print(Panel(result.text, title="[bold green]VastuFlow[/bold green]", expand=False))

            state = orchestrator.layout_state
            if state.rooms:
                score = f", Vastu score {state.vastu_score.overall}%" if state.vastu_score else ""
                console.print(
                    f"[dim]Layout: {len(state.rooms)} rooms on "
                    f"{state.plot_width:g}m × {state.plot_length:g}m{score}[/dim]"
                )
            if message is not None:
                return
    finally:
        await orchestrator.close()


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Log level"),
) -> None:
    _setup_logging(log_level)


@app.command()
def chat(
    message: Optional[str] = typer.Argument(None, help="Message to send; omit for interactive mode"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings YAML file"),
    endpoint: Optional[str] = typer.Option(None, help="Chat endpoint URL"),
    model: Optional[str] = typer.Option(None, help="Model name"),
    backend: Optional[str] = typer.Option(None, help="Layout backend URL"),
    fallback: Optional[bool] = typer.Option(
        None, "--fallback/--no-fallback", help="Generate directly if the model stays silent"
    ),
) -> None:
    """Chat with the design assistant."""
    settings = _load_settings(
        config,
        llm_endpoint=endpoint,
        llm_model=model,
        backend_url=backend,
        fallback_enabled=fallback,
    )
    asyncio.run(_chat(settings, message))


@app.command()
def parse(text: str = typer.Argument(..., help="Free-form plot description")) -> None:
    """Show the layout parameters extracted from TEXT."""
    params = ParameterNormalizer().normalize(text)
    if params is None:
        console.print("[yellow]No plot dimensions found.[/yellow]")
        raise typer.Exit(1)

    table = Table(title="Layout Parameters")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Width (m)", f"{params.width_m:g}")
    table.add_row("Length (m)", f"{params.height_m:g}")
    table.add_row("Orientation", params.orientation or "-")
    table.add_row("BHK", str(params.bhk) if params.bhk is not None else "-")
    table.add_row("Rooms", ", ".join(params.rooms))
    console.print(table)
    console.print(f"[dim]{build_directive(params)}[/dim]")


@app.command("config")
def show_config(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Settings YAML file"),
) -> None:
    """Show the effective settings."""
    settings = _load_settings(config)
    table = Table(title="VastuFlow Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in settings.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
