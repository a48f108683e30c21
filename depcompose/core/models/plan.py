"""
BuildPlan and ResolvedSettings — the output of a composition run.

The plan is what an external build executor consumes: an ordered list
of batches (every module in a batch may be built in parallel once all
earlier batches are done) plus the merged settings for each module.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ResolvedSettings(BaseModel):
    """Merged settings for one module.

    ``sources`` maps each key to the bundle that supplied the winning
    value.  ``bundle_chain`` is every bundle that took part in the merge,
    highest precedence first, as ``"<module>:<bundle>"``.
    """

    module: str
    values: dict[str, Any] = Field(default_factory=dict)
    sources: dict[str, str] = Field(default_factory=dict)
    bundle_chain: list[str] = Field(default_factory=list)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.values


class BuildPlan(BaseModel):
    """Ordered build batches plus resolved settings per module."""

    workspace: str = ""
    batches: list[list[str]] = Field(default_factory=list)
    settings: dict[str, ResolvedSettings] = Field(default_factory=dict)

    @property
    def batch_count(self) -> int:
        return len(self.batches)

    @property
    def module_count(self) -> int:
        return sum(len(b) for b in self.batches)

    @property
    def order(self) -> list[str]:
        """All modules in a valid sequential build order."""
        return [name for batch in self.batches for name in batch]

    @property
    def max_parallelism(self) -> int:
        """Size of the widest batch."""
        return max((len(b) for b in self.batches), default=0)

    def batch_index(self, name: str) -> int | None:
        """Index of the batch containing *name*, or None."""
        for index, batch in enumerate(self.batches):
            if name in batch:
                return index
        return None

    def settings_for(self, name: str) -> ResolvedSettings | None:
        return self.settings.get(name)

    def to_dict(self) -> dict:
        return {
            "workspace": self.workspace,
            "batch_count": self.batch_count,
            "module_count": self.module_count,
            "batches": [list(b) for b in self.batches],
            "settings": {
                name: resolved.model_dump(mode="json")
                for name, resolved in self.settings.items()
            },
        }
