"""Run a paperscope command: ``python -m tools <search|serve> [args...]``."""

from __future__ import annotations

import importlib
import sys

# command name -> module exposing main(argv) -> int
_COMMANDS: dict[str, str] = {
    "search": "tools.search",
    "serve": "tools.serve",
}


def _usage() -> str:
    lines = ["Usage: python -m tools <command> [args...]", "", "Commands:"]
    lines += [f"  {name}" for name in sorted(_COMMANDS)]
    return "\n".join(lines) + "\n"


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] in {"-h", "--help", "help"}:
        sys.stderr.write(_usage())
        return 0

    name, rest = args[0], args[1:]
    if name not in _COMMANDS:
        sys.stderr.write(f"Unknown command: {name}\n\n{_usage()}")
        return 2
    return importlib.import_module(_COMMANDS[name]).main(rest)


if __name__ == "__main__":
    raise SystemExit(main())
