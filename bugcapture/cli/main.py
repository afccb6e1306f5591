#!/usr/bin/env python3
"""Main CLI entry point for bug capture using Typer.

Commands:
    record   Open a page with bug capture attached and optionally submit a report
    serve    Run the development ingestion endpoint
    version  Show version information
"""

import asyncio
import json
import logging
from enum import IntEnum
from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from .. import __version__
from ..capture import BrowserFactory, CaptureEngine, load_config
from ..capture.config import CaptureConfig
from ..errors import ConfigurationError, SubmissionError
from ..models.capture import ReportOptions

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """CLI exit codes."""
    SUCCESS = 0
    SUBMISSION_ERROR = 1
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4


app = typer.Typer(
    name="bug-capture",
    help="Bug capture - record console, network and user activity and file bug reports",
    add_completion=False,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main():
    """
    Bug capture - record what happened on a page before a bug report.
    """
    pass


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"bug-capture v{__version__}")


async def _record(
    url: str,
    config: CaptureConfig,
    headful: bool,
    wait_seconds: float,
    submit: bool,
    options: ReportOptions,
    json_output: bool,
) -> ExitCode:
    factory = BrowserFactory(headless=not headful)
    await factory.start()
    try:
        async with factory.page() as page:
            engine = CaptureEngine(page)
            await engine.initialize(config)
            try:
                await page.goto(url, wait_until="load")
                if wait_seconds > 0:
                    typer.echo(f"Recording {url} for {wait_seconds:g}s...")
                    await asyncio.sleep(wait_seconds)

                if submit:
                    result = await engine.submit(options)
                    typer.echo(f"✅ Bug report submitted: id={result.id}")
                    return ExitCode.SUCCESS

                snapshot = await engine.capture()
                if json_output:
                    typer.echo(json.dumps(snapshot.to_wire(), indent=2))
                else:
                    typer.echo(
                        f"Captured {len(snapshot.console_logs)} console logs, "
                        f"{len(snapshot.network_logs)} network requests, "
                        f"{len(snapshot.user_actions)} user actions on {snapshot.page_url}"
                    )
                return ExitCode.SUCCESS
            finally:
                await engine.teardown()
    finally:
        await factory.stop()


@app.command()
def record(
    url: Annotated[
        str,
        typer.Argument(help="URL of the page to record")
    ],

    project_key: Annotated[
        Optional[str],
        typer.Option("--project-key", "-k", help="Project key issued by the ingestion API")
    ] = None,

    endpoint: Annotated[
        Optional[str],
        typer.Option("--endpoint", "-e", help="Base URL of the ingestion API")
    ] = None,

    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration file")
    ] = None,

    headful: Annotated[
        bool,
        typer.Option("--headful", help="Run browser with GUI and show the report button")
    ] = False,

    position: Annotated[
        Optional[str],
        typer.Option("--position", help="Report button corner (bottom-right, bottom-left, top-right, top-left)")
    ] = None,

    submit: Annotated[
        bool,
        typer.Option("--submit/--no-submit", help="Submit a report when recording ends")
    ] = False,

    title: Annotated[
        Optional[str],
        typer.Option("--title", "-t", help="Title of the submitted report")
    ] = None,

    description: Annotated[
        Optional[str],
        typer.Option("--description", "-d", help="Description of the submitted report")
    ] = None,

    wait: Annotated[
        float,
        typer.Option("--wait", "-w", help="Seconds to keep recording after the page loads")
    ] = 5.0,

    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the captured snapshot as JSON")
    ] = False,

    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose output")
    ] = False,
):
    """
    Open a page with bug capture attached.

    Examples:

        # Record for 10 seconds and print what was captured
        bug-capture record https://example.com -k demo -e http://localhost:8000 --wait 10

        # Interact with the page and file a report from the floating button
        bug-capture record https://example.com -k demo -e http://localhost:8000 --headful --wait 120

        # Submit a report automatically
        bug-capture record https://example.com -k demo -e http://localhost:8000 --submit --title "Broken checkout"
    """
    _configure_logging(verbose)

    try:
        config = load_config(
            config_file,
            project_key=project_key,
            api_endpoint=endpoint,
            button_position=position,
            show_button=True if headful else None,
        )
    except ConfigurationError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    if not config.project_key or not config.api_endpoint:
        typer.echo("❌ A project key and API endpoint are required (--project-key, --endpoint)", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    options = ReportOptions(title=title, description=description)

    try:
        exit_code = asyncio.run(
            _record(url, config, headful, wait, submit, options, json_output)
        )
    except ConfigurationError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)
    except SubmissionError as e:
        typer.echo(f"❌ Failed to submit bug report: {e.message}", err=True)
        raise typer.Exit(code=ExitCode.SUBMISSION_ERROR.value)
    except KeyboardInterrupt:
        typer.echo("\n⏹️  Recording cancelled", err=True)
        raise typer.Exit(code=ExitCode.RUNTIME_ERROR.value)
    except Exception as e:
        logger.error(f"Recording failed: {e}", exc_info=verbose)
        typer.echo(f"❌ Recording failed: {e}", err=True)
        raise typer.Exit(code=ExitCode.RUNTIME_ERROR.value)

    raise typer.Exit(code=exit_code.value)


@app.command()
def serve(
    project_key: Annotated[
        List[str],
        typer.Option("--project-key", "-k", help="Accepted project key (repeatable)")
    ],

    host: Annotated[
        str,
        typer.Option("--host", help="Interface to bind")
    ] = "127.0.0.1",

    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port to listen on")
    ] = 8000,

    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose output")
    ] = False,
):
    """
    Run the development ingestion endpoint.

    Examples:

        bug-capture serve --project-key demo --port 8000
    """
    import uvicorn

    from ..api import create_app

    _configure_logging(verbose)
    typer.echo(f"Serving bug report ingestion on http://{host}:{port} for {len(project_key)} project(s)")
    uvicorn.run(
        create_app(project_keys=project_key),
        host=host,
        port=port,
        log_level="debug" if verbose else "info",
    )


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    app()
