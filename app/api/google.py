"""
Protected Google Business Profile pass-through endpoints.

Both require ?key=<API_KEY>; used to discover ACCOUNT_NAME / LOCATION_NAME
during setup.
"""
from fastapi import APIRouter, Depends

from app.api.deps import get_google_client, verify_api_key
from app.core.config import settings
from app.core.exceptions import NotConfiguredException
from app.core.logging import logger
from app.core.middleware import get_request_id
from app.services.google_client import GoogleBusinessClient


router = APIRouter(tags=["google"], dependencies=[Depends(verify_api_key)])


@router.get("/accounts")
async def list_accounts(client: GoogleBusinessClient = Depends(get_google_client)):
    """
    List Google Business Profile accounts for the authorized user.

    Raises:
        403: Missing or wrong key
        502: Google API call failed
    """
    logger.info("Listing accounts", extra={"request_id": get_request_id()})
    return await client.list_accounts()


@router.get("/locations")
async def list_locations(client: GoogleBusinessClient = Depends(get_google_client)):
    """
    List locations under ACCOUNT_NAME.

    Raises:
        400: ACCOUNT_NAME not configured
        403: Missing or wrong key
        502: Google API call failed
    """
    account_name = settings.ACCOUNT_NAME
    if not account_name:
        raise NotConfiguredException("ACCOUNT_NAME")

    logger.info(
        "Listing locations",
        extra={"request_id": get_request_id(), "account": account_name},
    )
    return await client.list_locations(account_name)
