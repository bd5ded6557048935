"""``docspace-server``: run the API under uvicorn."""

import argparse
import os


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docspace-server", description="Run the docspace API server")
    parser.add_argument("--host", help="Bind address (default: DOCSPACE_HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Bind port (default: DOCSPACE_PORT or 8080)")
    parser.add_argument("--local", action="store_true", help="Use a local SQLite database")
    parser.add_argument("--storage-root", help="Directory that holds the Workspaces/ tree")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    # Settings are read when uvicorn imports docspace.main, so overrides go
    # through the environment.
    if args.local:
        os.environ["DOCSPACE_LOCAL_MODE"] = "1"
    if args.storage_root:
        os.environ["DOCSPACE_STORAGE_ROOT"] = args.storage_root

    import uvicorn

    from docspace.config import Settings

    settings = Settings()
    uvicorn.run(
        "docspace.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
