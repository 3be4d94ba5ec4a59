# /main.py
import asyncio
from aiohttp import web
from prometheus_client import start_http_server

from ivy_priority_fee.core.config import settings, LISTEN_HOST, LISTEN_PORT
from ivy_priority_fee.core.config_validator import validate as validate_config
from ivy_priority_fee.core.logger import configure_logging, get_logger
from ivy_priority_fee.api.http import create_app

async def main():
    configure_logging()
    log = get_logger("IVY.System")
    validate_config()
    log.info("IVY_PRIORITY_FEE_STARTING", listen=f"http://{LISTEN_HOST}:{LISTEN_PORT}", rpc_url=settings.RPC_URL)

    if settings.METRICS_PORT:
        start_http_server(settings.METRICS_PORT)
        log.info("METRICS_SERVER_STARTED", port=settings.METRICS_PORT)

    app = create_app()
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, LISTEN_HOST, LISTEN_PORT)
    await site.start()
    log.info("HTTP_SERVER_STARTED", host=LISTEN_HOST, port=LISTEN_PORT)

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        log.warning("SYSTEM_SHUTDOWN_COMPLETE")

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
