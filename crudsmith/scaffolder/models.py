"""Result models shared by the generators."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class GenerationStrategy(str, Enum):
    """How the admin resource file was produced."""
    NATIVE = "native"
    MANUAL = "manual"
    SKIPPED = "skipped"


class GenerationResult(BaseModel):
    """Files a generator wrote or left alone, and what it warned about."""

    name: str = Field(..., description="Entity the generator ran for")
    table: str
    written: list[Path] = Field(default_factory=list)
    skipped: list[Path] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    strategy: Optional[GenerationStrategy] = Field(
        default=None, description="Admin resource strategy; None for the API generator"
    )

    def summary(self) -> dict[str, str]:
        """Key/value overview for ``print_summary_table``."""
        data = {"Table": self.table}
        if self.strategy is not None:
            data["Strategy"] = self.strategy.value
        data["Written"] = str(len(self.written))
        data["Skipped"] = str(len(self.skipped))
        data["Warnings"] = str(len(self.warnings))
        return data
