from specforge.services.generation_service import GenerationService, validate_request
from specforge.services.quota_service import QuotaLedger
from specforge.services.spec_service import SpecStore

__all__ = [
    "GenerationService",
    "validate_request",
    "QuotaLedger",
    "SpecStore",
]
