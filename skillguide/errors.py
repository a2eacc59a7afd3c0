from __future__ import annotations


class PipelineError(Exception):
    """Fatal error that aborts a guide generation run."""


class DiscoveryExhaustedError(PipelineError):
    def __init__(self, message: str = "No sources were discovered for this topic."):
        super().__init__(message)


class NoUsableContentError(PipelineError):
    def __init__(
        self,
        message: str = "Scraping finished, but no source returned usable content.",
    ):
        super().__init__(message)
