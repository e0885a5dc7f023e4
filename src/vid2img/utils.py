import logging
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from vid2img.exceptions import TaskError
from vid2img.pipeline import IoOptions, report_result, run_task
from vid2img.task import EncoderTask

error_console = Console(stderr=True)


def confirm_output_overwrite(output: Path, force: bool) -> None:
    """Confirm overwrite if output exists and force=False.

    Args:
        output: Output file path
        force: If True, skip confirmation

    Raises:
        SystemExit: If user declines to overwrite
    """
    if output.exists() and not force:
        response = input(f"Output file '{output}' already exists. Overwrite? [y/N]: ")
        if response.lower() not in ("y", "yes"):
            print("Aborted.")  # noqa: T201
            raise SystemExit(1)


def configure_logging(console: Console, verbose: bool) -> None:
    """Route log records through rich; DEBUG with --verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
            )
        ],
        force=True,
    )


def convert(
    console: Console,
    task: EncoderTask[Any, Any],
    args: Any,
    input_path: Path,
    output: str,
    *,
    force: bool,
) -> int:
    """Run a conversion for a CLI command and return its exit code."""
    confirm_output_overwrite(task.make_output_path(output), force)

    console.print(f"[cyan]Input:[/cyan] {input_path}")
    console.print(f"[cyan]Output:[/cyan] {task.make_output_path(output)}")

    try:
        result = run_task(IoOptions(input=input_path, output=output), task, args, console=console)
    except TaskError as exc:
        error_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        return 1
    return report_result(result, console, error_console)
