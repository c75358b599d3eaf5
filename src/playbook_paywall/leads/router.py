"""Lead capture endpoint."""

from fastapi import APIRouter, Depends, HTTPException

from playbook_paywall.common.exceptions import InvalidRequestError, ProductNotFoundError
from playbook_paywall.deps import get_lead_service
from playbook_paywall.leads.schemas import LeadCreate, LeadResponse

router = APIRouter(tags=["leads"])


def _get_db():
    from playbook_paywall.deps import get_db
    return get_db()


@router.post("/leads", response_model=LeadResponse)
async def capture_lead(body: LeadCreate, svc=Depends(get_lead_service)):
    db = _get_db()
    try:
        async with db.get_session() as session:
            lead = await svc.capture_lead(
                session,
                email=body.email,
                source=body.source,
                consent_given=body.consent_given,
                target_product=body.target_product,
            )
    except ProductNotFoundError:
        raise HTTPException(status_code=400, detail="Invalid target product")
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=e.message)

    # Only forward leads that are durably stored.
    await svc.forward_to_loops(lead)
    return LeadResponse()
