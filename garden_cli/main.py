import logging

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from backend_client.client import HTTPBackendClient
from bed_commands.constants import DEFAULT_INSTRUCTION, NO_COMMANDS, SENT, TRANSPORT_FAILED, VALIDATION_FAILED
from bed_commands.dispatcher import CommandDispatcher, DispatchResult, Sent, ValidationFailed
from bed_commands.errors import LanguageModelError, TransportError
from command_parser.parser import parse_user_command
from garden_cli.config import Settings

logger = logging.getLogger(__name__)

# Initialize Rich console
console = Console()

app = typer.Typer(
    name="garden-cli",
    help="Tell your garden beds what to do in plain language.",
    add_completion=False
)

BORDER_STYLES = {
    SENT: "green",
    VALIDATION_FAILED: "yellow",
    TRANSPORT_FAILED: "red",
}


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def format_result(result: DispatchResult) -> str:
    """Format one dispatch result for display."""
    if isinstance(result, Sent):
        return f"✓ Response: {result.response_body}" if result.response_body else "✓ Command sent"
    if isinstance(result, ValidationFailed):
        return f"! {result.error}"
    return f"✗ {result.reason}"


@app.command()
def run(
    instruction: str = typer.Argument(DEFAULT_INSTRUCTION, help="What happened in the garden, e.g. 'Watered bed b1 with 2 liters this morning'"),
):
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    try:
        commands = parse_user_command(
            instruction,
            model=settings.openai_model,
            api_key=settings.openai_api_key,
        )
    except (LanguageModelError, TransportError) as e:
        logger.error(f"Language model request failed: {e}")
        console.print(f"[red]Error parsing command: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if not commands:
        console.print(f"[yellow]{NO_COMMANDS}[/yellow]")
        return

    dispatcher = CommandDispatcher(
        HTTPBackendClient(settings.garden_api_url, timeout=settings.http_timeout),
        default_bed_id=settings.default_bed_id,
        concurrent=settings.concurrent_dispatch,
    )
    for i, result in enumerate(dispatcher.dispatch(commands), start=1):
        console.print(Panel(
            Text(format_result(result)),
            title=f"Step {i}: {result.action}",
            border_style=BORDER_STYLES[result.status],
        ))


def main():
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
