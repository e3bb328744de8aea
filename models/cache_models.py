"""Models for result cache data."""

from __future__ import annotations

from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin, dataclass_json

# Resolved at runtime by dataclasses-json when decoding.
from models.analysis_models import AnalysisResult

__all__: list[str] = ["CacheEntry"]


@dataclass_json
@dataclass
class CacheEntry(DataClassJsonMixin):
    """Cached analysis result.

    Attributes:
        key (str): Provider-agnostic hash of the semantic request.
        result (AnalysisResult): The cached result as produced by the provider.
        created_at (float): Creation time as epoch seconds.
        ttl_ms (int): Freshness period in milliseconds.
    """

    key: str
    result: AnalysisResult
    created_at: float
    ttl_ms: int

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl_ms / 1000

    def is_fresh(self, now: float) -> bool:
        """Check whether the entry is still within its TTL.

        Args:
            now (float): Current time as epoch seconds.

        Returns:
            bool: True while ``now`` is before the expiry time.
        """
        return now < self.expires_at
