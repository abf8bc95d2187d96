"""CLI entry point for tossup-trainer.

Usage:
  python -m tossup_trainer serve [--port PORT] [--host HOST] [--no-history]
  python -m tossup_trainer stop
  python -m tossup_trainer restart [--port PORT]
  python -m tossup_trainer status
  python -m tossup_trainer parse ANSWERLINE
  python -m tossup_trainer judge ANSWERLINE ANSWER [ANSWER ...]
  python -m tossup_trainer stats
"""
from __future__ import annotations

import os
import signal
import sys
from pathlib import Path

PID_FILE = Path(__file__).resolve().parent.parent / ".server.pid"
COMMANDS = ("serve", "stop", "restart", "status", "parse", "judge", "stats")
DEFAULT_PORT = 8766
NO_HISTORY_ENV = "TOSSUP_TRAINER_NO_HISTORY"


class PidFile:
    """The running server's PID, kept in a file next to the package."""

    def __init__(self, path: Path):
        self.path = path

    def read(self) -> int | None:
        """PID of a live server, or None. A dead or garbled entry is cleared."""
        try:
            pid = int(self.path.read_text().strip())
        except FileNotFoundError:
            return None
        except ValueError:
            self.clear()
            return None
        try:
            os.kill(pid, 0)
        except (ProcessLookupError, PermissionError):
            self.clear()
            return None
        return pid

    def claim(self) -> None:
        self.path.write_text(str(os.getpid()))

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


def _pid_file() -> PidFile:
    return PidFile(PID_FILE)


def main():
    args = sys.argv[1:]
    command, rest = (args[0], args[1:]) if args else ("serve", [])
    handler = globals().get(f"_{command}") if command in COMMANDS else None
    if handler is None:
        print(f"Unknown command: {command}")
        print("Commands: " + ", ".join(COMMANDS))
        sys.exit(1)
    if command in ("stop", "status", "stats"):
        handler()
    else:
        handler(rest)


def _options(args: list[str]) -> dict[str, str]:
    """Collect '--name value' pairs; bare switches map to ''."""
    options: dict[str, str] = {}
    i = 0
    while i < len(args):
        name = args[i]
        if name.startswith("--"):
            has_value = i + 1 < len(args) and not args[i + 1].startswith("--")
            options[name[2:]] = args[i + 1] if has_value else ""
            i += 2 if has_value else 1
        else:
            i += 1
    return options


def _stop() -> bool:
    """Send SIGTERM to the running server. Returns True if there was one."""
    pid_file = _pid_file()
    pid = pid_file.read()
    if pid is not None:
        try:
            os.kill(pid, signal.SIGTERM)
        except ProcessLookupError:
            pid = None
        pid_file.clear()
    print("Server is not running." if pid is None else f"Stopped server (PID {pid}).")
    return pid is not None


def _status():
    pid = _pid_file().read()
    print("Server is not running." if pid is None else f"Server is running (PID {pid}).")


def _restart(args: list[str]):
    import time

    if _stop():
        # Give uvicorn a moment to release the port
        time.sleep(1)
    _serve(args)


def _serve(args: list[str]):
    import uvicorn

    pid_file = _pid_file()
    running = pid_file.read()
    if running is not None:
        print(f"Server already running (PID {running}). Use 'restart' or 'stop' first.")
        sys.exit(1)

    options = _options(args)
    host = options.get("host", "127.0.0.1")
    port = int(options.get("port") or DEFAULT_PORT)
    if "no-history" in options:
        os.environ[NO_HISTORY_ENV] = "1"

    print(f"Tossup Trainer listening on http://{host}:{port} (Ctrl+C to quit)")
    pid_file.claim()
    try:
        uvicorn.run("tossup_trainer.app:app", host=host, port=port, timeout_graceful_shutdown=5)
    finally:
        pid_file.clear()
        os.environ.pop(NO_HISTORY_ENV, None)


def _parse(args: list[str]):
    if not args:
        print("Usage: parse ANSWERLINE")
        sys.exit(1)

    from tossup_trainer.parsers.answerline_parser import parse_answerline

    answers = parse_answerline(" ".join(args))
    print("Acceptable:")
    for a in answers.acceptable:
        print(f"  {a}")
    print("Promptable:")
    for p in answers.promptable:
        print(f"  {p}")


def _judge(args: list[str]):
    if len(args) < 2:
        print("Usage: judge ANSWERLINE ANSWER [ANSWER ...]")
        sys.exit(1)

    from tossup_trainer.judge import Judge

    judge = Judge.from_answerline(args[0])
    for answer in args[1:]:
        verdict = judge.judge(answer)
        print(f"{answer!r:30s} {verdict.result.value:10s} ({verdict.rating:.2f})")
        if verdict.is_final:
            break


def _stats():
    from tossup_trainer.config import load_settings
    from tossup_trainer.db import Database

    settings = load_settings()
    db = Database(settings.db_full_path)
    stats = db.get_stats()

    print("Tossup Trainer Stats")
    print("=" * 40)
    print(f"Tossups heard:      {stats['tossups_heard']}")
    print(f"Tossup points:      {stats['tossup_points']}")
    print(f"Powers/tens/negs:   {stats['powers']}/{stats['tens']}/{stats['negs']}")
    print(f"Accuracy:           {stats['accuracy']}%")
    print(f"Bonuses heard:      {stats['bonuses_heard']}")
    print(f"Points per bonus:   {stats['points_per_bonus']}")
    db.close()


if __name__ == "__main__":
    main()
