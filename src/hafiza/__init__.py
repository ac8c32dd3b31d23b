"""hafiza: review ladder scheduling and daily usage accounting for flashcard apps."""

from __future__ import annotations

from .models import QuotaRecord, ResourceType, ReviewState, UsageCounts
from .quota import DEFAULT_PRINCIPAL, QuotaLedger, resolve_principal
from .reviews import ReviewBook
from .scheduler import DEFAULT_SEQUENCE, ReviewScheduler

__all__ = [
    "DEFAULT_PRINCIPAL",
    "DEFAULT_SEQUENCE",
    "QuotaLedger",
    "QuotaRecord",
    "ResourceType",
    "ReviewBook",
    "ReviewScheduler",
    "ReviewState",
    "UsageCounts",
    "resolve_principal",
]
