import argparse
import logging

import uvicorn

from podmeter.config import Settings

if __name__ == "__main__":
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    log = logging.getLogger("launcher")

    parser = argparse.ArgumentParser(description="podmeter server launcher")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")
    args = parser.parse_args()

    if settings.cluster_contexts:
        log.info(f"Clusters: {', '.join(sorted(settings.cluster_contexts))}")
    if not settings.prometheus_url:
        log.info("No Prometheus configured, trend lines will be synthetic")

    uvicorn.run(
        "podmeter.api.server:app",
        host=args.host,
        port=args.port,
        reload=not args.no_reload,
        log_level=settings.log_level.lower(),
    )
