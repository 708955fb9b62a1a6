"""
schemas/models.py -- Records returned by the remote schema service.

Pure data containers. Mapping from JSON lives in schemas/mappers.py.
"""

from dataclasses import dataclass, field
from typing import Optional

from auth.models import AuthConfig
from registry.models import Field


@dataclass
class StoredSchema:
    """A schema as persisted by the schema service.

    id and created_at are assigned by the service. auth_config is None for
    plain data schemas (no authentication attached).
    """

    id: str
    collection_name: str
    fields: list[Field] = field(default_factory=list)
    auth_config: Optional[AuthConfig] = None
    user_id: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by the service
    updated_at: str = ""
    is_active: bool = True
