from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.core.documents.models import DocumentSequence


class DocumentPrefix:
    PURCHASE_ORDER = "PO"
    SALES_INVOICE = "SINV"
    PURCHASE_INVOICE = "PINV"


class DocumentNumberGenerator:
    """
    Generates sequential document numbers in format: PREFIX-YYYY-NNNNNN

    Examples:
        PO-2026-000001
        SINV-2026-000042
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _locked_sequence(self, prefix: str, year: int) -> DocumentSequence:
        stmt = (
            select(DocumentSequence)
            .where(DocumentSequence.prefix == prefix, DocumentSequence.year == year)
            .with_for_update()
        )
        sequence = (await self.session.execute(stmt)).scalar_one_or_none()
        if sequence is None:
            self.session.add(DocumentSequence(prefix=prefix, year=year, last_number=0))
            await self.session.flush()
            sequence = (await self.session.execute(stmt)).scalar_one()
        return sequence

    async def generate(self, prefix: str, year: int | None = None) -> str:
        """
        Reserve the next number for prefix/year.

        Uses SELECT FOR UPDATE so concurrent requests never get the same number.
        """
        year = year or datetime.now().year
        sequence = await self._locked_sequence(prefix, year)
        sequence.last_number += 1
        await self.session.flush()
        return f"{prefix}-{year}-{sequence.last_number:06d}"

    async def peek(self, prefix: str, year: int | None = None) -> str:
        """Next number that generate() would return, without reserving it."""
        year = year or datetime.now().year
        result = await self.session.execute(
            select(DocumentSequence.last_number).where(
                DocumentSequence.prefix == prefix, DocumentSequence.year == year
            )
        )
        last_number = result.scalar_one_or_none() or 0
        return f"{prefix}-{year}-{last_number + 1:06d}"


async def get_document_number(session: AsyncSession, prefix: str, year: int | None = None) -> str:
    """Convenience function to generate a document number."""
    return await DocumentNumberGenerator(session).generate(prefix, year)
