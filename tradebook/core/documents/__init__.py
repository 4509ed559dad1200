from tradebook.core.documents.models import DocumentSequence
from tradebook.core.documents.number_generator import (
    DocumentNumberGenerator,
    DocumentPrefix,
    get_document_number,
)

__all__ = ["DocumentSequence", "DocumentNumberGenerator", "DocumentPrefix", "get_document_number"]
