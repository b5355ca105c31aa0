import argparse
import os
from typing import Sequence


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Userfeed API server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8081")),
        help="Port for the API (defaults to $PORT or 8081)",
    )
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)

    import uvicorn

    uvicorn.run(
        "userfeed.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
