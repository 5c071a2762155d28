"""
Launch the combat API:

    python -m squad_sim.web.run

Picks a free port when the requested one is taken and serves the FastAPI app
through uvicorn.
"""
from __future__ import annotations

import argparse
import logging
import socket
import sys


def find_available_port(host: str, start_port: int, *, max_tries: int = 50) -> tuple[int, bool]:
    """Return the first bindable port at or above ``start_port``.

    The flag is True when the combat API had to move off the requested port.
    """
    if max_tries < 1:
        raise ValueError("max_tries must be >= 1")

    candidates = range(start_port, start_port + max_tries)
    failure: OSError | None = None
    for port in candidates:
        try:
            listener = socket.create_server((host, port), reuse_port=False)
        except OSError as exc:
            failure = exc
            continue
        with listener:
            return port, port != start_port

    raise RuntimeError(
        f"No free port for the combat API in {start_port}-{candidates[-1]} "
        f"after {max_tries} attempts ({failure})"
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m squad_sim.web.run",
        description="Serve the squad combat estimate and session API.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host to listen on (default: %(default)s).")
    parser.add_argument("--port", type=int, default=8000, help="Starting port (default: %(default)s).")
    parser.add_argument(
        "--tick-interval",
        type=float,
        default=0.5,
        help="Wall-clock seconds between combat ticks (default: %(default)s).",
    )
    parser.add_argument("--log-level", default="info", help="Logging level (default: %(default)s).")
    args = parser.parse_args(argv)

    if args.tick_interval < 0:
        parser.error("--tick-interval must be >= 0")

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        chosen_port, did_fallback = find_available_port(args.host, args.port, max_tries=50)
    except (RuntimeError, ValueError) as exc:
        print(f"[squad-sim] Failed to select a free port: {exc}", file=sys.stderr)
        return 2

    if did_fallback:
        print(f"[squad-sim] Serving on http://{args.host}:{chosen_port} (selected because {args.port} was in use).")
    else:
        print(f"[squad-sim] Serving on http://{args.host}:{chosen_port}.")

    import uvicorn

    from squad_sim.web.main import create_app

    try:
        uvicorn.run(
            create_app(tick_interval=args.tick_interval),
            host=args.host,
            port=chosen_port,
            log_level=args.log_level.lower(),
        )
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
