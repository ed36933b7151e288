import argparse
import json
import logging

from core.config import settings
from core.errors import ScanError
from pipeline.orchestrator import run_single


def _print(obj):
    print(json.dumps(obj, indent=2, default=str))


def _parse_ports(raw: str):
    ports = []
    for part in raw.split(","):
        part = part.strip()
        if part:
            ports.append(part)
    return ports


def cmd_scan(args):
    try:
        res = run_single(args.target, _parse_ports(args.ports), timeout_ms=args.timeout_ms)
    except ScanError as exc:
        _print({"error": exc.message})
        raise SystemExit(1) from exc
    _print(res.to_dict())


def cmd_serve(args):
    import uvicorn

    uvicorn.run(
        "api.server:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_level=settings.log_level.lower(),
    )


def main(argv=None):
    parser = argparse.ArgumentParser(description="Safe TCP reachability checks for public hosts")
    sub = parser.add_subparsers()

    p_scan = sub.add_parser("scan", help="Check allow-listed ports on one public host")
    p_scan.add_argument("target")
    p_scan.add_argument("-p", "--ports", default="80,443", help="comma-separated ports (default: 80,443)")
    p_scan.add_argument("--timeout-ms", type=int, default=None, help="per-port timeout, minimum 1000")
    p_scan.set_defaults(func=cmd_scan)

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
