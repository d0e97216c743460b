"""``kennedy api``: run the HTTP backend or check a running one."""

import requests

from kennedy.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PORT = 4001


def register_subcommands(subparsers):
    for name, help_text in (("start", "Serve the API with uvicorn"), ("status", "Ping a running API")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--host", default="localhost")
        sub.add_argument("--port", type=int, default=DEFAULT_PORT)


def _serve(host, port):
    import uvicorn

    from kennedy.api.main import app

    logger.info("Starting Kennedy backend at %s:%s", host, port)
    uvicorn.run(app, host=host, port=port)


def _ping(host, port) -> bool:
    url = f"http://{host}:{port}/status"
    try:
        ok = requests.get(url, timeout=5).ok
    except requests.RequestException as exc:
        logger.warning("Kennedy backend unreachable at %s: %s", url, exc)
        ok = False
    print(f"{url}: {'online' if ok else 'offline'}")
    return ok


def dispatch(args):
    if args.subcommand == "start":
        _serve(args.host, args.port)
    elif args.subcommand == "status":
        _ping(args.host, args.port)
    else:
        raise ValueError(f"No handler for api subcommand: {args.subcommand}")
