"""Party signatures on contracts and addenda."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.middleware.exceptions import BusinessLogicError
from charterdesk.models.company import Company
from charterdesk.models.contract import Contract
from charterdesk.models.signature import AddendaSignature, ContractSignature
from charterdesk.models.user import User
from charterdesk.schemas.signature import SignatureCreate, SignatureOut, SignatureSummary, SignRequest
from charterdesk.services.addenda import get_addendum
from charterdesk.services.enrichment import storage_url
from charterdesk.services.lookups import Lookups, ensure_exists, get_or_404
from charterdesk.utils.dates import utcnow


async def create_contract_signature(
    db: AsyncSession, caller: Caller, contract_id: str, body: SignatureCreate
) -> ContractSignature:
    await get_or_404(db, Contract, contract_id, "Contract")
    await ensure_exists(db, Company, body.company_id, "Company")
    now = utcnow()
    signature = ContractSignature(
        contract_id=contract_id,
        party_role=body.party_role,
        company_id=body.company_id,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(signature)
    await db.flush()
    return signature


async def create_addenda_signature(
    db: AsyncSession, caller: Caller, addenda_type: str, addenda_id: str, body: SignatureCreate
) -> AddendaSignature:
    await get_addendum(db, addenda_type, addenda_id)
    await ensure_exists(db, Company, body.company_id, "Company")
    now = utcnow()
    signature = AddendaSignature(
        addenda_id=addenda_id,
        addenda_type=addenda_type,
        party_role=body.party_role,
        company_id=body.company_id,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(signature)
    await db.flush()
    return signature


async def _pending(db: AsyncSession, model, signature_id: str):
    signature = await get_or_404(db, model, signature_id, "Signature")
    if signature.status != "pending":
        raise BusinessLogicError(f"This signature has already been {signature.status}")
    return signature


async def sign(
    db: AsyncSession, caller: Caller, model, signature_id: str, body: SignRequest
):
    signature = await _pending(db, model, signature_id)
    now = utcnow()
    signature.status = "signed"
    signature.signed_by = caller.user_id
    signature.signed_at = now
    signature.signing_method = body.signing_method
    signature.document_storage_id = body.document_storage_id
    signature.updated_at = now
    await db.flush()
    return signature


async def reject(db: AsyncSession, caller: Caller, model, signature_id: str):
    signature = await _pending(db, model, signature_id)
    signature.status = "rejected"
    signature.signed_by = caller.user_id
    signature.updated_at = utcnow()
    await db.flush()
    return signature


async def list_contract_signatures(db: AsyncSession, contract_id: str) -> list[SignatureOut]:
    result = await db.execute(
        select(ContractSignature)
        .where(ContractSignature.contract_id == contract_id)
        .order_by(ContractSignature.created_at)
    )
    return await to_out(db, list(result.scalars().all()))


async def list_addenda_signatures(
    db: AsyncSession, addenda_type: str, addenda_id: str
) -> list[SignatureOut]:
    result = await db.execute(
        select(AddendaSignature)
        .where(
            AddendaSignature.addenda_type == addenda_type,
            AddendaSignature.addenda_id == addenda_id,
        )
        .order_by(AddendaSignature.created_at)
    )
    return await to_out(db, list(result.scalars().all()))


async def to_out(db: AsyncSession, signatures: list) -> list[SignatureOut]:
    lookups = Lookups(db)
    await lookups.load(Company, [s.company_id for s in signatures])
    await lookups.load(User, [s.signed_by for s in signatures])
    out = []
    for s in signatures:
        is_contract = isinstance(s, ContractSignature)
        out.append(SignatureOut(
            id=s.id,
            target_type="contract" if is_contract else "addenda",
            target_id=s.contract_id if is_contract else s.addenda_id,
            addenda_type=None if is_contract else s.addenda_type,
            party_role=s.party_role,
            company_id=s.company_id,
            status=s.status,
            signed_by=s.signed_by,
            signed_at=s.signed_at,
            signing_method=s.signing_method,
            document_storage_id=s.document_storage_id,
            document_url=storage_url(s.document_storage_id),
            created_at=s.created_at,
            updated_at=s.updated_at,
            company=lookups.company_ref(s.company_id),
            user=lookups.user_summary(s.signed_by),
        ))
    return out


def summarize(signatures: list) -> SignatureSummary:
    summary = SignatureSummary(total=len(signatures))
    for s in signatures:
        if s.status == "signed":
            summary.signed += 1
        elif s.status == "rejected":
            summary.rejected += 1
        else:
            summary.pending += 1
    return summary
