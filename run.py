import argparse
import asyncio
import logging
import os
import sys

import uvicorn

from mixarchive.api.app import create_app
from mixarchive.container import Container
from mixarchive.domain.crawl_request import REQUEST_KINDS, KIND_HISTORY

logger = logging.getLogger("mixarchive")


def _parse_args(argv):
    parser = argparse.ArgumentParser(prog="mixarchive", description="Archive mix listings as tracklist bundles")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API (default)")
    serve.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    serve.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))

    archive = sub.add_parser("archive", help="Archive one listing locally and write archive.zip")
    archive.add_argument("url", help="Listing URL, e.g. https://8tracks.com/<user>/history")
    archive.add_argument("--type", dest="kind", choices=REQUEST_KINDS, default=KIND_HISTORY)
    archive.add_argument("--out", default=".", help="Directory to write archive.zip to")

    return parser.parse_args(argv)


async def run_archive(container: Container, url: str, kind: str, out_dir: str) -> int:
    """Run pagination, every item and assembly in this process.

    Returns a process exit code.
    """
    invoker = container.invoker()
    container.invocation_handlers().register_with(invoker)
    requests_repo = container.requests_repository()
    try:
        request = await asyncio.to_thread(requests_repo.create_request, url, kind)
        total = await container.pagination().run_to_completion(request.request_id)
        logger.info("Discovered %d items; waiting for workers", total)
        await invoker.drain()

        readiness = await container.completion_tracker().check_ready(request.request_id)
        if not readiness.ready:
            logger.error(
                "Only %s of %s items completed; not assembling",
                readiness.completed_count, readiness.total_discovered,
            )
            return 1

        ref = await container.archive_assembler().assemble(request.request_id)
        data = await asyncio.to_thread(container.artifact_store().get, ref.key)
        if data is None:
            logger.error("Archive %s missing after upload", ref.key)
            return 1
        os.makedirs(out_dir, exist_ok=True)
        path = os.path.join(out_dir, "archive.zip")
        with open(path, "wb") as f:
            f.write(data)
        logger.info("Wrote %s (%d entries, %d failed)", path, ref.entries, ref.failed)
        return 0
    finally:
        await container.renderer().close()


def main(container: Container = None, argv=None):
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    container = container or Container()

    if args.command == "archive":
        # Local runs never leave the process.
        container.config.INVOKER.from_value("inprocess")
        return asyncio.run(run_archive(container, args.url, args.kind, args.out))

    host = getattr(args, "host", os.getenv("HOST", "0.0.0.0"))
    port = getattr(args, "port", int(os.getenv("PORT", "8000")))
    app = create_app(container)
    logger.info("Starting API on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port)
    return 0


if __name__ == '__main__':
    sys.exit(main())
