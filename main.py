"""
main.py

Entry point: YouTube video -> audio -> Deepgram transcript.
Stages whose output already exists on disk are skipped, so re-running
the same URL resumes where a previous run stopped.
"""

import logging
import os
import sys
from typing import Optional

import click
from dotenv import load_dotenv

from ytscribe import __version__
from ytscribe.config import Config
from ytscribe.errors import ConfigError, PipelineError
from ytscribe.pipeline import TranscriptionPipeline
from ytscribe.progress import LoggingProgress, NullProgress, ProgressSink, TqdmProgress

logger = logging.getLogger("ytscribe")


def format_duration(seconds: float) -> str:
    """Render elapsed pipeline time for the summary line: "42s", "2m 35s", "1h 15m 23s"."""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)

    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def choose_progress(quiet: bool, stream=None) -> ProgressSink:
    """
    Pick the download progress sink for this run.

    A bar when stderr is a terminal, periodic log lines when it is
    redirected, nothing with --quiet.
    """
    if quiet:
        return NullProgress()
    stream = sys.stderr if stream is None else stream
    isatty = getattr(stream, "isatty", None)
    if isatty is not None and isatty():
        return TqdmProgress()
    return LoggingProgress()


def configure_logging(verbose: bool = False) -> None:
    """
    Configure root logging with a single stream handler.

    LOG_LEVEL sets the level unless --verbose forces DEBUG.
    """
    level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "INFO").upper()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)


def process_video(url: str, config: Config, progress: Optional[ProgressSink] = None) -> int:
    """
    Run the pipeline for one URL and print a summary.

    Returns:
        int: Process exit code (0 on success, 1 on any pipeline error)
    """
    pipeline = TranscriptionPipeline.from_config(config, progress=progress)

    try:
        report = pipeline.run(url)
    except PipelineError as e:
        logger.error(f"✗ Failed to process video: {e}")
        return 1

    click.echo()
    click.echo("=" * 80)
    click.echo(f"✓ {report.job.display_title} [{report.job.stable_id}]")
    for result in report.stages:
        click.echo(f"  {result.stage.value:<10} {result.status.value}")
    click.echo(f"  transcript: {report.transcript_path}")
    click.echo(f"  elapsed:    {format_duration(report.elapsed)}")
    click.echo("=" * 80)
    return 0


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("url")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--quiet", "-q", is_flag=True, help="Hide download progress.")
@click.version_option(__version__, prog_name="ytscribe")
def main(url: str, verbose: bool, quiet: bool) -> None:
    """YouTube Video Transcriber: download URL, extract audio, transcribe it."""
    load_dotenv()
    configure_logging(verbose)

    try:
        config = Config.from_env()
    except ConfigError as e:
        logger.error(f"ATTN: {e}")
        sys.exit(1)

    config.ensure_directories()
    progress = choose_progress(quiet)

    try:
        code = process_video(url, config, progress=progress)
    except KeyboardInterrupt:
        logger.error("Interrupted")
        sys.exit(130)
    except Exception:
        logger.exception("Unexpected error while processing video")
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
