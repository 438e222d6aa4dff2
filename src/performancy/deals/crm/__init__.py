"""CRM integration layer -- pluggable adapter pattern for deal sync.

Provides abstract CRMAdapter interface with the Zoho implementation:
- ZohoAdapter: OAuth token lifecycle and Deals module REST calls
- field_mapping: Zoho <-> canonical stage vocabulary and field mapping
- exceptions: CRMError taxonomy shared by adapters and the pipeline store

Architecture: the PipelineStore's local collection is authoritative for the
UI; the CRM is the remote system of record synced best-effort.
"""

from src.performancy.deals.crm.adapter import CRMAdapter
from src.performancy.deals.crm.exceptions import (
    AuthenticationError,
    ConfigurationError,
    CRMError,
    RemoteFetchError,
    RemoteWriteError,
    ValidationError,
)
from src.performancy.deals.crm.field_mapping import (
    CANONICAL_TO_ZOHO_STAGE,
    ZOHO_STAGE_MAP,
    from_zoho_record,
    to_zoho_fields,
)
from src.performancy.deals.crm.zoho import ZohoAdapter

__all__ = [
    "CRMAdapter",
    "ZohoAdapter",
    "CRMError",
    "AuthenticationError",
    "ConfigurationError",
    "RemoteFetchError",
    "RemoteWriteError",
    "ValidationError",
    "ZOHO_STAGE_MAP",
    "CANONICAL_TO_ZOHO_STAGE",
    "from_zoho_record",
    "to_zoho_fields",
]
