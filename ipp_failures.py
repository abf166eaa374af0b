from dataclasses import dataclass
from enum import Enum


class Failure(str, Enum):
    TRUNCATED = "Truncated"
    ATTRIBUTE_NOT_FOUND = "AttributeNotFound"
    MIME_PARSE_ERROR = "MimeParseError"
    CONTENT_TYPE_NOT_FOUND = "ContentTypeNotFound"
    UNEXPECTED = "Unexpected"


@dataclass(frozen=True)
class StageFailure:
    """Why a pipeline stage produced no result.

    Stages hand these back as values; only the orchestrator turns them into
    log events.
    """

    kind: Failure
    stage: str
    reason: str

    def describe(self) -> str:
        return f"{self.kind.value} ({self.stage}): {self.reason}"
