import argparse
import logging
import os
from pathlib import Path

import uvicorn

from logship.config import get_settings
from logship.envelope import EnvelopeError, decode_invoke_request
from logship.pipeline import LogPipeline
from logship.server import create_app
from logship.shipper import STATUS_OK


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ship event hub log records to the log listener")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ship_parser = subparsers.add_parser("ship", help="run one invocation from a JSON file")
    ship_parser.add_argument("--input", required=True, help="Invocation envelope or JSON list of records")
    ship_parser.add_argument("--show-trace", action="store_true", help="print the execution trace")

    serve_parser = subparsers.add_parser("serve", help="start the custom handler HTTP server")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("FUNCTIONS_HTTPWORKER_PORT", "8080")),
        help="Port to listen on (defaults to FUNCTIONS_HTTPWORKER_PORT)",
    )

    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if args.command == "serve":
        uvicorn.run(create_app(settings), host="0.0.0.0", port=args.port)
        return

    try:
        request = decode_invoke_request(Path(args.input).read_bytes())
    except (OSError, EnvelopeError) as exc:
        print(f"status=error reason={exc}")
        raise SystemExit(2) from exc

    result = LogPipeline(settings).run(request.records)

    if args.show_trace:
        for line in result.logs:
            print(line)
    print(
        "status={status} records={written} skipped={failed} attempts={attempts} backup={backup}".format(
            status=result.status_code,
            written=result.records_written,
            failed=result.records_failed,
            attempts=len(result.attempts),
            backup=result.backup_blob or "none",
        )
    )
    if result.status_code != STATUS_OK:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
