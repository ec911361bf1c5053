"""
models.py

Data carried between pipeline stages.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class Stage(str, Enum):
    """Pipeline stages in execution order."""
    RESOLVE = "resolve"
    FETCH = "fetch"
    TRANSCODE = "transcode"
    TRANSCRIBE = "transcribe"
    DONE = "done"


class StageStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"


@dataclass
class ResolvedVideo:
    """Identity and metadata of a remote video."""
    stable_id: str
    display_title: str
    raw_metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Job:
    """One pipeline run for a single source reference. Never persisted."""
    source_reference: str
    stable_id: str
    display_title: str
    raw_metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_resolved(cls, source_reference: str, resolved: ResolvedVideo) -> "Job":
        return cls(
            source_reference=source_reference,
            stable_id=resolved.stable_id,
            display_title=resolved.display_title,
            raw_metadata=resolved.raw_metadata,
        )


@dataclass
class StageResult:
    """Outcome of one stage. Failures are raised, so every result is a success."""
    stage: Stage
    status: StageStatus
    artifact: Optional[Path] = None
    payload: Optional[Any] = None

    @property
    def skipped(self) -> bool:
        return self.status is StageStatus.SKIPPED


@dataclass
class PipelineReport:
    """Summary of a finished run."""
    job: Job
    stages: List[StageResult]
    video_path: Path
    audio_path: Path
    transcript_path: Path
    transcript: str
    elapsed: float = 0.0

    @property
    def all_cached(self) -> bool:
        return all(result.skipped for result in self.stages)
