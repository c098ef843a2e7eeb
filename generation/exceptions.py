"""
Exceptions raised by the AI generation layer.

Transient (retried inside the chunk generator):
  EmptyResponseError, MalformedResponseError, plus openai.APIError subclasses
Terminal:
  ChunkGenerationError           — one chunk exhausted its retries (job continues)
  GenerationServiceUnconfigured  — no API key; nothing is attempted
"""


class GenerationError(Exception):
    """Base class for generation failures."""


class GenerationServiceUnconfigured(GenerationError):
    """The text-generation service has no credentials configured."""


class EmptyResponseError(GenerationError):
    """The service answered with no content."""


class MalformedResponseError(GenerationError):
    """The service answered with content that is not the JSON we asked for."""


class ChunkGenerationError(GenerationError):
    """A chunk failed on every attempt."""

    def __init__(self, chunk_index: int, cause: BaseException):
        self.chunk_index = chunk_index
        self.cause = cause
        super().__init__(f"Chunk {chunk_index + 1} failed: {cause}")
