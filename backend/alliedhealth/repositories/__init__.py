"""Repository layer for data access.

Repositories encapsulate database operations and provide a clean interface
for the workflow services on top of them.
"""

from alliedhealth.repositories.catalog import CatalogRepository
from alliedhealth.repositories.listing import Listing
from alliedhealth.repositories.patient_outcome import PatientOutcomeRepository
from alliedhealth.repositories.referral import ReferralRepository
from alliedhealth.repositories.task import TaskRepository

__all__ = [
    "CatalogRepository",
    "Listing",
    "PatientOutcomeRepository",
    "ReferralRepository",
    "TaskRepository",
]
