# vipgate/api/openapi/scripts.py
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from starlette.background import BackgroundTask

from core.auth.ip_filter import AccessGate
from core.files.store import FileStore
from schemas.auth import GateDecision
from api.dependencies import get_access_gate, get_file_store, verify_client_ip

logger = logging.getLogger(f"vipgate.{__name__}")
router = APIRouter()

JAVASCRIPT_MEDIA_TYPE = "application/javascript"


def _script_error(message: str, status_code: int) -> Response:
    return Response(content=f"// {message}", status_code=status_code, media_type=JAVASCRIPT_MEDIA_TYPE)


@router.options("/VIP.js", include_in_schema=False)
async def vip_script_preflight():
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
            "Access-Control-Max-Age": "86400",
        },
    )


@router.get("/VIP.js", summary="Whitelisted VIP Script", response_class=Response)
async def get_vip_script(
    decision: GateDecision = Depends(verify_client_ip),
    gate: AccessGate = Depends(get_access_gate),
    file_store: FileStore = Depends(get_file_store),
):
    """
    Serves the newest uploaded *.vip.js file to whitelisted addresses so
    third-party pages can embed it with a plain script tag.
    """
    record = file_store.find_vip_script()
    if record is None:
        return _script_error("VIP.js file not found", 404)

    path = file_store.resolve_path(record)
    if path is None:
        return _script_error("VIP.js file not found on disk", 404)

    logger.info(f"Serving VIP script '{record.original_filename}' to {decision.ip_address}")
    return Response(
        content=path.read_bytes(),
        media_type=JAVASCRIPT_MEDIA_TYPE,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "GET",
            "Access-Control-Allow-Headers": "Content-Type",
            "Cache-Control": "no-cache",
        },
        background=BackgroundTask(
            gate.record_access, decision, record.id, f"VIP.js accessed: {record.original_filename}"
        ),
    )
