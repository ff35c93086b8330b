"""CLI interface for simpletrace.

This module provides a Typer-based command-line interface for inspecting
``traceparent`` headers and running the trace-propagating proxy.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from simpletrace.config import EngineConfigError, get_settings, load_engine_config
from simpletrace.config.engine_loader import provision_engine_config
from simpletrace.telemetry import configure_logging
from simpletrace.tracecontext import (
    RequestTraceCoordinator,
    TraceContext,
    decode_sampled,
    parse_traceparent,
)

app = typer.Typer(help="simpletrace - W3C trace context propagation for request logs")
console = Console()


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    configure_logging()


@app.command(name="parse")
def parse_command(
    header: str = typer.Argument(..., help="traceparent header value"),
    strict: bool = typer.Option(False, "--strict", help="Validate field widths and hex encoding"),
) -> None:
    """Parse a traceparent header and show its fields.

    Examples:
        simpletrace parse 00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01
    """
    parsed = parse_traceparent(header, strict=strict)
    if parsed is None:
        console.print(f"[red]Invalid traceparent:[/red] {header}")
        raise typer.Exit(1)

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("trace_id", parsed.trace_id)
    table.add_row("parent_span_id", parsed.parent_span_id)
    table.add_row("flags", parsed.flags)
    table.add_row("sampled", str(decode_sampled(parsed.flags)).lower())
    console.print(table)


@app.command(name="derive")
def derive_command(
    header: Optional[str] = typer.Argument(None, help="Incoming traceparent (omit to start a trace)"),
    trace_format: str = typer.Option("otel", "--format", "-f", help="Log field vocabulary"),
    project_id: str = typer.Option("", "--project-id", help="Google Cloud project ID"),
    strict: bool = typer.Option(False, "--strict", help="Validate field widths and hex encoding"),
) -> None:
    """Show the outgoing header and log fields for an incoming header."""
    try:
        config = provision_engine_config(
            {"format": trace_format, "project_id": project_id, "strict": strict}
        )
    except EngineConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(2) from e

    coordinator = RequestTraceCoordinator(config)
    ctx = coordinator.derive(header)

    console.print(f"[bold]traceparent:[/bold] {ctx.traceparent}", highlight=False, soft_wrap=True)

    table = Table(title=f"log fields ({config.vocabulary.value})", show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", overflow="fold")
    for name, value in coordinator.fields_for(ctx):
        table.add_row(name, str(value).lower() if isinstance(value, bool) else value)
    console.print(table)


@app.command(name="generate")
def generate_command() -> None:
    """Print a traceparent header for a new sampled trace."""
    console.print(TraceContext.new_trace().traceparent, highlight=False)


@app.command(name="serve")
def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    upstream: Optional[str] = typer.Option(None, "--upstream", help="Upstream base URL"),
) -> None:
    """Run the trace-propagating reverse proxy."""
    import uvicorn  # noqa: PLC0415

    from simpletrace.service.proxy import create_app  # noqa: PLC0415

    settings = get_settings()
    overrides = {
        key: value
        for key, value in {
            "service_host": host,
            "service_port": port,
            "upstream_url": upstream,
        }.items()
        if value is not None
    }
    if overrides:
        settings = settings.model_copy(update=overrides)

    try:
        engine_config = load_engine_config(settings=settings)
    except EngineConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(2) from e

    uvicorn.run(
        create_app(settings, engine_config),
        host=settings.service_host,
        port=settings.service_port,
        log_config=None,
    )


if __name__ == "__main__":
    app()
