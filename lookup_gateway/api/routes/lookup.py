from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from lookup_gateway.adapters.rdap.base import AbstractRdapFetcher
from lookup_gateway.core.admission import AdmissionContext, enforce_admission, get_admission_controller
from lookup_gateway.schemas.lookup import MessageResponse
from lookup_gateway.services.admission_service import AdmissionController
from lookup_gateway.services.lookup_service import LookupService

router = APIRouter(tags=["Lookup"])


def get_rdap_fetcher(request: Request) -> AbstractRdapFetcher:
    return request.app.state.rdap_fetcher


def get_lookup_service(
    fetcher: AbstractRdapFetcher = Depends(get_rdap_fetcher),
    admission: AdmissionController = Depends(get_admission_controller),
) -> LookupService:
    return LookupService(fetcher=fetcher, admission=admission)


@router.post(
    "/lookup",
    responses={
        400: {"model": MessageResponse, "description": 'Missing "type" or "object".'},
        429: {"model": MessageResponse, "description": "Quota reached or cooldown active."},
        500: {"model": MessageResponse, "description": "Every RDAP source failed."},
    },
)
async def lookup(
    request: Request,
    context: AdmissionContext = Depends(enforce_admission),
    service: LookupService = Depends(get_lookup_service),
) -> JSONResponse:
    """Look up an RDAP object for an admitted client.

    Expects a JSON body ``{"type": "...", "object": "..."}``. Admission
    (allow-list, admin key, quota and cooldown) runs before the body is read.

    Returns:
        The upstream RDAP JSON, passed through unchanged.

    Raises:
        ValidationAppError: 400 when "type" or "object" is missing.
        UpstreamAppError: 500 when the RDAP sources failed.
    """
    raw_body = await request.body()
    data = await service.lookup(raw_body, context)
    return JSONResponse(status_code=200, content=data)
