"""Error taxonomy for the search pipeline."""


class RAGError(Exception):
    """Base class for all pipeline errors."""

    code = 1000

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(RAGError, ValueError):
    """Malformed input: empty or oversized query, bad session id, bad score."""

    code = 1000


class QueryProcessingError(RAGError):
    """The query optimizer got empty input or produced an empty term."""

    code = 1001

    def __init__(self, message: str) -> None:
        super().__init__(f"Query processing failed: {message}")


class RetrievalError(RAGError):
    """Embedding or vector index call failed."""

    code = 1002

    def __init__(self, message: str) -> None:
        super().__init__(f"Vector search failed: {message}")


class GenerationError(RAGError):
    """Response generation contract violation."""

    code = 1003

    def __init__(self, message: str) -> None:
        super().__init__(f"Response generation failed: {message}")


class ServiceUnavailableError(RAGError):
    """A named external dependency could not be reached."""

    code = 1004

    def __init__(self, service: str, detail: str | None = None) -> None:
        message = f"Service '{service}' is unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.service = service
