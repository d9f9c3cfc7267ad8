#!/usr/bin/env python3
"""
netspeed CLI -- sampling-based network speed testing from the terminal.

Usage::

    python speedtest.py --url http://host:8080     # rich dashboard
    python speedtest.py --simple                   # plain text
    python speedtest.py --json                     # flat JSON to stdout
    python speedtest.py -o result.json             # save to file
    python speedtest.py --csv log.csv              # append CSV row
    python speedtest.py --history                  # show past results
    python speedtest.py --repeat 5 --interval 60   # repeat 5 times
    python speedtest.py --share                    # print shareable text
    python speedtest.py --serve --port 8080        # host the endpoints
    python speedtest.py --config-set ping_count 10 # persist a setting
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
import time
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from netspeed.config import (
    DEFAULTS,
    Settings,
    config_path,
    get_config_value,
    load_config,
    set_config_value,
)
from netspeed.controller import PhaseController
from netspeed.errors import AllSamplesFailed, HistoryError, SpeedTestError, TestCancelled
from netspeed.grading import compare_with_previous, format_share_text
from netspeed.history import JsonHistoryStore
from netspeed.server import run_server
from netspeed.transport import HttpTransport
from ui.dashboard import PhaseProgress, console, print_final_results, print_header, print_history
from ui.output import append_csv, format_text_result, save_json

logger = logging.getLogger("netspeed.cli")


# ---------------------------------------------------------------------------
# Setup helpers
# ---------------------------------------------------------------------------

def _configure_logging(verbose: bool) -> None:
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


def _build_settings(args: argparse.Namespace) -> Settings:
    """Merge the config file with command-line overrides.  Raises ``ValueError``."""
    config: Dict[str, Any] = load_config()
    overrides = {
        "base_url": args.url,
        "ping_count": args.ping_count,
        "request_timeout": args.timeout,
    }
    config.update({k: v for k, v in overrides.items() if v is not None})
    return Settings.from_config(config)


def _set_config(key: str, raw: str) -> str:
    """Validate and persist one config value.  Raises ``ValueError``."""
    if key not in DEFAULTS:
        raise ValueError(f"Unknown config key: {key}")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw  # bare strings such as URLs
    Settings.from_config({**load_config(), key: value})
    return set_config_value(key, value)


def _install_cancel_handler(controller: PhaseController) -> None:
    """Route Ctrl+C to ``controller.cancel()`` so the run stops cleanly."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, controller.cancel)
    except (NotImplementedError, RuntimeError):
        pass  # Windows: fall back to KeyboardInterrupt in main()


# ---------------------------------------------------------------------------
# Core test runner
# ---------------------------------------------------------------------------

async def run_speedtest(
    settings: Settings,
    *,
    json_output: bool = False,
    output_file: Optional[str] = None,
    csv_file: Optional[str] = None,
    simple: bool = False,
    share: bool = False,
    save_history: bool = True,
) -> Optional[dict]:
    """Execute one full test and return the flat JSON result dict."""

    show_ui = not json_output and not simple
    store = JsonHistoryStore(settings.history_file or None, limit=settings.history_limit)
    previous = store.load()

    if show_ui:
        print_header(settings.base_url)

    progress = PhaseProgress() if show_ui else None

    async with HttpTransport(settings.base_url, timeout=settings.request_timeout) as transport:
        controller = PhaseController(
            transport,
            history=store if save_history else None,
            settings=settings,
            on_progress=progress.update if progress else None,
        )
        _install_cancel_handler(controller)

        if progress:
            progress.start()
        try:
            result = await controller.start()
        except HistoryError as exc:
            logger.warning("Result not recorded in history: %s", exc)
            result = controller.last_result
        finally:
            if progress:
                progress.stop()

    # -- Presentation -------------------------------------------------------
    if show_ui:
        print_final_results(result, delta=compare_with_previous(result, previous))
    elif simple:
        print(format_text_result(result, settings.base_url))

    result_json = result.to_dict()

    if json_output:
        print(json.dumps(result_json, indent=2))

    if output_file:
        save_json(result_json, output_file)
        if not json_output:
            console.print(f"\n[green]Results saved to:[/green] {output_file}")

    if csv_file:
        append_csv(csv_file, result, server=settings.base_url)
        if not json_output:
            console.print(f"[green]CSV row appended to:[/green] {csv_file}")

    if share:
        share_text = format_share_text(result)
        if show_ui:
            from rich.panel import Panel
            console.print(Panel(share_text, title="Share This Result", border_style="cyan"))
        else:
            print("\n" + share_text)

    return result_json


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="netspeed -- sampling-based network speed testing",
    )
    # Target
    parser.add_argument("--url", type=str, metavar="URL", help="Base URL serving /ping, /download and /upload")
    parser.add_argument("--timeout", type=float, metavar="SECS", help="Per-request timeout in seconds (default: 5)")
    parser.add_argument("--ping-count", type=int, metavar="N", help="Number of ping samples (default: 5)")

    # Output modes
    parser.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    parser.add_argument("--output", "-o", type=str, metavar="FILE", help="Save results to JSON file")
    parser.add_argument("--csv", type=str, metavar="FILE", help="Append results as CSV row")
    parser.add_argument("--simple", "-s", action="store_true", help="Simple output mode (no dashboard)")
    parser.add_argument("--share", action="store_true", help="Print shareable result text")
    parser.add_argument("--no-save", action="store_true", help="Do not record the result in history")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every phase and sample")

    # Repeat mode
    parser.add_argument("--repeat", type=int, default=1, metavar="N", help="Run the test N times (default: 1)")
    parser.add_argument("--interval", type=float, default=60.0, metavar="SECS", help="Seconds between repeated tests (default: 60)")

    # Other modes
    parser.add_argument("--history", action="store_true", help="Show past test results and exit")
    parser.add_argument("--show-config", action="store_true", help="Print the effective configuration and exit")
    parser.add_argument("--config-get", type=str, metavar="KEY", help="Print one config value and exit")
    parser.add_argument("--config-set", nargs=2, metavar=("KEY", "VALUE"), help="Persist one config value (JSON literal) and exit")
    parser.add_argument("--serve", action="store_true", help="Serve the measurement endpoints instead of testing")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Bind address for --serve")
    parser.add_argument("--port", type=int, default=8080, help="Port for --serve (default: 8080)")
    return parser


def main(argv: Optional[list] = None) -> None:
    args = _parser().parse_args(argv)
    _configure_logging(args.verbose)

    if args.serve:
        run_server(host=args.host, port=args.port)
        return

    # Config editing
    if args.config_set:
        try:
            path = _set_config(*args.config_set)
        except (ValueError, TypeError, OSError) as exc:
            console.print(f"[red]Error: {exc}[/red]")
            sys.exit(1)
        console.print(f"[green]Saved to:[/green] {path}")
        return

    if args.config_get:
        if args.config_get not in DEFAULTS:
            console.print(f"[red]Error: Unknown config key: {args.config_get}[/red]")
            sys.exit(1)
        console.print_json(json.dumps(get_config_value(args.config_get)))
        return

    try:
        settings = _build_settings(args)
    except (ValueError, TypeError, KeyError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    logger.debug("Effective settings: %s", vars(settings))

    if args.show_config:
        console.print(f"[dim]{config_path()}[/dim]")
        console.print_json(json.dumps(vars(settings)))
        return

    # History mode
    if args.history:
        store = JsonHistoryStore(settings.history_file or None, limit=settings.history_limit)
        print_history(store.load())
        return

    if args.repeat < 1:
        console.print("[red]Error: --repeat must be >= 1[/red]")
        sys.exit(1)

    try:
        for run_idx in range(args.repeat):
            logger.info("Starting run %d of %d against %s", run_idx + 1, args.repeat, settings.base_url)
            if args.repeat > 1 and not args.json:
                console.print(f"\n[bold cyan]--- Run {run_idx + 1}/{args.repeat} ---[/bold cyan]")

            asyncio.run(
                run_speedtest(
                    settings,
                    json_output=args.json,
                    output_file=args.output,
                    csv_file=args.csv,
                    simple=args.simple,
                    share=args.share,
                    save_history=not args.no_save,
                )
            )

            # Wait between runs (but not after the last one)
            if run_idx < args.repeat - 1:
                if not args.json:
                    console.print(f"[dim]Next run in {args.interval:.0f}s...[/dim]")
                time.sleep(args.interval)

    except (KeyboardInterrupt, TestCancelled):
        console.print("\n[yellow]Test cancelled by user[/yellow]")
        sys.exit(1)
    except AllSamplesFailed as exc:
        console.print(f"\n[red]Error: {exc}; is {settings.base_url} reachable?[/red]")
        sys.exit(1)
    except (SpeedTestError, OSError) as exc:
        console.print(f"\n[red]Error: {exc}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
