"""
pipeline.py

Orchestrates RESOLVE -> FETCH -> TRANSCODE -> TRANSCRIBE for one video.

Every artifact path is a function of the stable id alone. A stage whose
artifact already exists is skipped; the first failing stage aborts the run
and leaves earlier artifacts in place so the next run resumes from there.
"""

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional

from .artifacts import artifact_path, staged_write
from .config import Config
from .downloader import VideoDownloader
from .errors import WriteError
from .models import Job, PipelineReport, Stage, StageResult, StageStatus
from .progress import ProgressSink
from .resolver import VideoResolver
from .transcoder import AudioExtractor
from .transcriber import BaseTranscriber, get_transcriber
from .ytdl_client import YtdlClient

logger = logging.getLogger(__name__)


class TranscriptionPipeline:
    """
    Runs one video through all stages with an on-disk artifact cache.

    Example:
        >>> pipeline = TranscriptionPipeline.from_config(config)
        >>> report = pipeline.run("https://www.youtube.com/watch?v=...")
        >>> print(report.transcript)
    """

    def __init__(self, config: Config, resolver: VideoResolver, downloader: VideoDownloader,
                 extractor: AudioExtractor, transcriber: BaseTranscriber):
        self.config = config
        self.resolver = resolver
        self.downloader = downloader
        self.extractor = extractor
        self.transcriber = transcriber

    @classmethod
    def from_config(cls, config: Config, progress: Optional[ProgressSink] = None) -> "TranscriptionPipeline":
        """Build the pipeline with the production stage implementations."""
        client = YtdlClient(config)
        return cls(
            config=config,
            resolver=VideoResolver(client),
            downloader=VideoDownloader(client, progress=progress),
            extractor=AudioExtractor(bitrate=config.audio_bitrate, timeout=config.transcode_timeout),
            transcriber=get_transcriber(config),
        )

    def run(self, source_reference: str) -> PipelineReport:
        """
        Process one video reference.

        Args:
            source_reference: Video URL

        Returns:
            PipelineReport: Job, per-stage results and the transcript

        Raises:
            PipelineError: The error of the first stage that failed
        """
        started = time.time()

        job = Job.from_resolved(source_reference, self.resolver.resolve(source_reference))
        logger.info(f"Processing {job.stable_id} ({job.display_title})")

        video_path = artifact_path(self.config, Stage.FETCH, job.stable_id)
        audio_path = artifact_path(self.config, Stage.TRANSCODE, job.stable_id)
        transcript_path = artifact_path(self.config, Stage.TRANSCRIBE, job.stable_id)

        results: List[StageResult] = [
            self._run_stage(Stage.FETCH, video_path,
                            lambda: self.downloader.download(job.source_reference, video_path)),
            self._run_stage(Stage.TRANSCODE, audio_path,
                            lambda: self.extractor.extract(video_path, audio_path)),
        ]

        transcript_result = self._run_stage(Stage.TRANSCRIBE, transcript_path,
                                            lambda: self._transcribe(audio_path, transcript_path))
        results.append(transcript_result)

        if transcript_result.skipped:
            transcript = transcript_path.read_text(encoding="utf-8")
        else:
            transcript = transcript_result.payload

        logger.info(f"{Stage.DONE.value}: {job.stable_id} -> {transcript_path}")
        return PipelineReport(
            job=job,
            stages=results,
            video_path=video_path,
            audio_path=audio_path,
            transcript_path=transcript_path,
            transcript=transcript,
            elapsed=time.time() - started,
        )

    def _run_stage(self, stage: Stage, artifact: Path, action: Callable) -> StageResult:
        if artifact.exists():
            logger.info(f"[{stage.value}] skipped (cached): {artifact}")
            return StageResult(stage=stage, status=StageStatus.SKIPPED, artifact=artifact)

        logger.info(f"[{stage.value}] running")
        payload = action()
        logger.info(f"[{stage.value}] completed: {artifact}")
        return StageResult(stage=stage, status=StageStatus.COMPLETED, artifact=artifact, payload=payload)

    def _transcribe(self, audio_path: Path, transcript_path: Path) -> str:
        transcript = self.transcriber.transcribe(audio_path)
        try:
            with staged_write(transcript_path) as temp_path:
                temp_path.write_text(transcript, encoding="utf-8")
        except OSError as e:
            raise WriteError(f"Could not write transcript {transcript_path}: {e}") from e
        return transcript
