"""
ytscribe

Core modules for the video-to-transcript pipeline:
- resolver: stable video id and metadata lookup using yt-dlp
- downloader: cookie-authenticated video download using yt-dlp
- transcoder: audio extraction using ffmpeg
- transcriber: speech-to-text transcription using Deepgram
- pipeline: stage orchestration with an on-disk artifact cache
"""

__version__ = "1.0.0"
