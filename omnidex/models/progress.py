"""
Scan progress events and summaries.
"""
from typing import Optional

from pydantic import BaseModel, Field

from .asset import AssetRecord


class ScanStatus:
    INITIALIZING = "Initializing Scan"
    SCANNING = "Scanning"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"
    FAILED = "Failed"


class ScanProgress(BaseModel):
    """Progress event handed to the progress sink."""
    location_id: int
    status: str
    current_path: str = ""
    processed_count: int = 0
    total_count: int = 0
    error: Optional[str] = None
    completed_successfully: bool = False


class ScanSummary(BaseModel):
    """Aggregate outcome of one scan run."""
    location_id: int
    total_count: int = 0
    processed_count: int = 0
    assets: list[AssetRecord] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    enriched_count: int = 0
    cancelled: bool = False

    @property
    def completed_successfully(self) -> bool:
        return not self.cancelled and not self.errors
