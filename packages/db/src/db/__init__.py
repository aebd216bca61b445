# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, get_db, get_db_service
from .enums import (
    ActivityType,
    DocumentType,
    FinalDocumentKind,
    PaymentMethod,
    PaymentStatus,
    QuoteStatus,
    SignatureStatus,
    SubmissionStatus,
    UserRole,
)
from .models import (
    ActivityLog,
    Agency,
    Carrier,
    FinancePlan,
    Quote,
    QuoteDocument,
    Submission,
)

__all__ = [
    "Base",
    "DatabaseService",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ActivityType",
    "DocumentType",
    "FinalDocumentKind",
    "PaymentMethod",
    "PaymentStatus",
    "QuoteStatus",
    "SignatureStatus",
    "SubmissionStatus",
    "UserRole",
    # Models
    "ActivityLog",
    "Agency",
    "Carrier",
    "FinancePlan",
    "Quote",
    "QuoteDocument",
    "Submission",
]
