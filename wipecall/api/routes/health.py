from fastapi import APIRouter, Depends

from wipecall.api.deps import get_app_settings
from wipecall.config import Settings

router = APIRouter()


@router.get("/health")
async def health(settings: Settings = Depends(get_app_settings)):
    wcl_configured = bool(
        settings.wcl.client_id and settings.wcl.client_secret.get_secret_value()
    )
    return {
        "status": "ok",
        "version": "0.1.0",
        "wcl": "configured" if wcl_configured else "not configured",
    }
