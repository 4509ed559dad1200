from sqlalchemy.ext.asyncio import AsyncSession

from tradebook.core.documents import DocumentNumberGenerator, DocumentPrefix, get_document_number


class TestDocumentNumberGenerator:
    """Tests for PO and invoice number sequences."""

    async def test_first_purchase_order_number(self, db_session: AsyncSession):
        number = await get_document_number(db_session, DocumentPrefix.PURCHASE_ORDER, year=2026)
        assert number == "PO-2026-000001"

    async def test_numbers_are_sequential(self, db_session: AsyncSession):
        numbers = [
            await get_document_number(db_session, DocumentPrefix.SALES_INVOICE, year=2026)
            for _ in range(3)
        ]
        assert numbers == ["SINV-2026-000001", "SINV-2026-000002", "SINV-2026-000003"]

    async def test_prefixes_and_years_are_independent(self, db_session: AsyncSession):
        po = await get_document_number(db_session, DocumentPrefix.PURCHASE_ORDER, year=2026)
        pinv = await get_document_number(db_session, DocumentPrefix.PURCHASE_INVOICE, year=2026)
        po_next_year = await get_document_number(
            db_session, DocumentPrefix.PURCHASE_ORDER, year=2027
        )
        po2 = await get_document_number(db_session, DocumentPrefix.PURCHASE_ORDER, year=2026)

        assert po == "PO-2026-000001"
        assert pinv == "PINV-2026-000001"
        assert po_next_year == "PO-2027-000001"
        assert po2 == "PO-2026-000002"

    async def test_peek_does_not_reserve(self, db_session: AsyncSession):
        generator = DocumentNumberGenerator(db_session)

        assert await generator.peek(DocumentPrefix.PURCHASE_ORDER, year=2026) == "PO-2026-000001"
        assert await generator.peek(DocumentPrefix.PURCHASE_ORDER, year=2026) == "PO-2026-000001"

        await generator.generate(DocumentPrefix.PURCHASE_ORDER, year=2026)
        assert await generator.peek(DocumentPrefix.PURCHASE_ORDER, year=2026) == "PO-2026-000002"
