import argparse
import os
import sys
from pathlib import Path

import uvicorn

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Serve the investment proposal API.")
    parser.add_argument(
        "--host",
        default=os.getenv("INVESTMENT_API_HOST", "0.0.0.0"),
        help="Interface to bind.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("INVESTMENT_API_PORT", "8000")),
        help="Port to bind.",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart on source changes (local development only).",
    )
    args = parser.parse_args(argv)

    uvicorn.run(
        "src.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
