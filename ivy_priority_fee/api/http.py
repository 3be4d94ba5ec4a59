# /ivy_priority_fee/api/http.py
from aiohttp import web

from ivy_priority_fee.core.exceptions import PriorityFeeError
from ivy_priority_fee.core.logger import get_logger, bind_request_id, FEE_REQUESTS
from ivy_priority_fee.fees.aggregator import PriorityFeeEstimator
from ivy_priority_fee.rpc.client import RpcClient

log = get_logger(__name__)

ESTIMATOR_KEY = web.AppKey("estimator", PriorityFeeEstimator)

@web.middleware
async def not_found_middleware(request, handler):
    """Unknown paths and unsupported methods both answer 404 with an empty body."""
    try:
        return await handler(request)
    except (web.HTTPNotFound, web.HTTPMethodNotAllowed):
        return web.Response(status=404)

async def reasonable_priority_fee(request):
    bind_request_id(request.headers.get("X-Request-Id"))
    estimator = request.app[ESTIMATOR_KEY]
    try:
        fee = await estimator.get_reasonable_priority_fee()
    except PriorityFeeError as e:
        FEE_REQUESTS.labels("error").inc()
        log.error("PRIORITY_FEE_REQUEST_FAILED", error=str(e), error_type=type(e).__name__)
        return web.json_response({"error": str(e)}, status=500)
    except Exception as e:
        FEE_REQUESTS.labels("error").inc()
        log.exception("PRIORITY_FEE_REQUEST_CRASHED", error=str(e), error_type=type(e).__name__)
        return web.json_response({"error": str(e) or type(e).__name__}, status=500)
    FEE_REQUESTS.labels("ok").inc()
    return web.json_response({"reasonablePriorityFee": fee})

async def health(request):
    """Liveness only; never touches the node."""
    return web.Response(text="ok")

def create_app(estimator: PriorityFeeEstimator | None = None) -> web.Application:
    """
    Builds the HTTP front end.

    Without an explicit estimator, one is created around a fresh RpcClient.
    The estimator's client is closed when the app shuts down.
    """
    app = web.Application(middlewares=[not_found_middleware])
    app[ESTIMATOR_KEY] = estimator or PriorityFeeEstimator(RpcClient())

    async def rpc_client_ctx(app):
        client = app[ESTIMATOR_KEY].client
        log.info("RPC_CLIENT_READY", rpc_url=client.rpc_url)
        yield
        await client.close()

    app.cleanup_ctx.append(rpc_client_ctx)

    app.add_routes([
        web.get("/", reasonable_priority_fee, allow_head=False),
        web.get("/health", health, allow_head=False),
    ])
    return app
