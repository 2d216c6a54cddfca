#!/usr/bin/env python
"""pseudoshell CLI entry point.

Run the shell with: python -m pseudoshell
Or after installation: pseudoshell

Usage:
    pseudoshell [OPTIONS]

Options:
    --mode MODE         portfolio or ctf (default: ctf)
    --store PATH        Best-time JSON file (default: ~/.pseudoshell/best_time.json)
    --visualize TEXT    Run the encryption visualizer on TEXT and exit
    --algo NAME         Visualizer algorithm: AES-256 or RSA-OAEP
    --dashboard         Also start the Streamlit dashboard
    --log-level LEVEL   Logging level (default: WARNING)
    --version           Show version and exit
    --help              Show this message and exit
"""

from __future__ import annotations

import argparse
import getpass
import logging
import subprocess
import sys
from pathlib import Path
from typing import Iterable, Optional

from colorama import Fore, Style, init as colorama_init

from . import __version__
from .command_handler import LineKind, OutputLine, PortfolioShell, Shell
from .config import get_config
from .puzzle import PuzzleSession, PuzzleShell, format_time
from .storage import JsonFileStore
from .transcript import Transcript, export_as_text
from .visualizer import AES_256, ALGORITHM_STEPS, RSA_OAEP, Step, VisualizerRun

LINE_COLORS = {
    LineKind.COMMAND: Fore.CYAN,
    LineKind.OUTPUT: "",
    LineKind.ERROR: Fore.RED,
    LineKind.ROOT_ANNOUNCE: Fore.RED + Style.BRIGHT,
}


def setup_logging(level: str) -> None:
    """Configure logging for the application."""
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=numeric_level,
        format=get_config().logging.format,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def render(lines: Iterable[OutputLine]) -> None:
    """Print transcript lines, colored by kind."""
    for line in lines:
        color = LINE_COLORS.get(line.kind, "")
        print(color + line.text + (Style.RESET_ALL if color else ""))


def start_dashboard(port: int) -> Optional[subprocess.Popen]:
    """Start the Streamlit dashboard in a subprocess."""
    config = get_config()
    dashboard_path = config.project_root / "dashboard" / "app.py"

    if not dashboard_path.exists():
        logging.warning("Dashboard not found at %s", dashboard_path)
        return None

    cmd = [
        sys.executable,
        "-m",
        "streamlit",
        "run",
        str(dashboard_path),
        "--server.port",
        str(port),
        "--server.headless",
        "true",
    ]

    try:
        proc = subprocess.Popen(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
        )
        logging.info("Dashboard started on http://localhost:%d", port)
        return proc
    except FileNotFoundError:
        logging.warning("Streamlit not installed, dashboard will not be available")
        return None
    except OSError as e:
        logging.error("Failed to start dashboard: %s", e)
        return None


def build_shell(mode: str, store_path: Optional[Path] = None) -> Shell:
    if mode == "portfolio":
        return PortfolioShell()
    store = JsonFileStore(store_path) if store_path else None
    return PuzzleShell(store=store)


def run_visualizer(text: str, algo: str) -> int:
    """Run the encryption visualizer in the console."""
    steps = ALGORITHM_STEPS[algo]

    def show(index: int, step: Step) -> None:
        print(f"{Fore.CYAN}{index + 1}. {step.label}{Style.RESET_ALL} - {step.desc}")

    run = VisualizerRun(algo, text)
    try:
        result = run.run(on_step=show)
    except KeyboardInterrupt:
        run.cancel()
        print(Fore.YELLOW + "[!] Cancelled" + Style.RESET_ALL)
        return 1

    print(f"{len(steps)} steps in {round(result.elapsed_ms)} ms")
    print(f"cipher: {result.cipher}")
    return 0


def _read_line(transcript: Transcript) -> str:
    if transcript.state.awaiting_secret:
        return getpass.getpass("")
    return input("$ ")


def repl(transcript: Transcript) -> int:
    """Interactive loop over a transcript.

    Meta inputs: ``:up``/``:down`` recall history, ``:tab TEXT`` completes,
    ``:export`` prints the transcript, ``:replay`` starts over, ``:quit``.
    """
    render(transcript.lines)
    buffer = ""
    while True:
        try:
            raw = _read_line(transcript)
        except EOFError:
            print()
            return 0
        except KeyboardInterrupt:
            print()
            if not transcript.state.awaiting_secret:
                return 0
            render([transcript.interrupt()])
            continue

        meta = raw.strip()
        if meta in (":up", ":down"):
            recall = transcript.previous if meta == ":up" else transcript.next
            buffer = recall(buffer)
            print(buffer)
            continue
        if meta.startswith(":tab"):
            buffer = transcript.complete(raw.strip()[5:])
            print(buffer)
            continue
        if meta == ":export":
            print(export_as_text(transcript))
            continue
        if meta == ":replay":
            transcript.replay()
            render(transcript.lines)
            continue
        if meta in (":quit", ":q"):
            return 0

        buffer = ""
        new_lines = transcript.submit(raw)
        if transcript.last_result is not None and transcript.last_result.clear:
            print("\033[2J\033[H", end="")
        render(new_lines)

        state = transcript.state
        if isinstance(state, PuzzleSession) and state.puzzle.take_solved_signal():
            elapsed = state.puzzle.elapsed_ms or 0.0
            best = state.puzzle.best_elapsed_ms
            print(Fore.GREEN + f"[+] Time: {format_time(elapsed)}" + Style.RESET_ALL)
            if best is not None:
                print(Fore.GREEN + f"[+] Best: {format_time(best)}" + Style.RESET_ALL)


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pseudoshell",
        description="pseudoshell - Sandboxed pseudo-shell with a CTF micro puzzle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    pseudoshell                          Play the CTF micro puzzle
    pseudoshell --mode portfolio         Browse the portfolio terminal
    pseudoshell --visualize sss          Run the AES-256 visualizer on "sss"

Environment variables:
    PSEUDOSHELL_USER          Prompt user name
    PSEUDOSHELL_HOST          Prompt host name
    PSEUDOSHELL_DATA_DIR      Per-user data directory
    PSEUDOSHELL_STORE_PATH    Best-time JSON file
    PSEUDOSHELL_LOG_LEVEL     Logging level
        """,
    )

    parser.add_argument(
        "--mode",
        "-m",
        default="ctf",
        choices=["portfolio", "ctf"],
        help="Which shell to run (default: ctf)",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Best-time JSON file (default: PSEUDOSHELL_STORE_PATH)",
    )
    parser.add_argument(
        "--visualize",
        metavar="TEXT",
        default=None,
        help="Run the encryption visualizer on TEXT and exit",
    )
    parser.add_argument(
        "--algo",
        default=AES_256,
        choices=[AES_256, RSA_OAEP],
        help="Visualizer algorithm (default: AES-256)",
    )
    parser.add_argument(
        "--dashboard",
        "-d",
        action="store_true",
        help="Also start the Streamlit dashboard",
    )
    parser.add_argument(
        "--log-level",
        "-l",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING, or PSEUDOSHELL_LOG_LEVEL)",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"pseudoshell {__version__}",
    )

    args = parser.parse_args()

    config = get_config()
    setup_logging(args.log_level or config.logging.level)
    colorama_init(autoreset=True)

    if args.visualize is not None:
        return run_visualizer(args.visualize, args.algo)

    dashboard_proc = None
    if args.dashboard:
        dashboard_proc = start_dashboard(config.dashboard.port)

    try:
        return repl(Transcript(build_shell(args.mode, args.store)))
    finally:
        if dashboard_proc and dashboard_proc.poll() is None:
            dashboard_proc.terminate()
            try:
                dashboard_proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                dashboard_proc.kill()


if __name__ == "__main__":
    sys.exit(main())
