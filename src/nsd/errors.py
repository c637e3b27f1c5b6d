from __future__ import annotations

from pathlib import Path


class NuScenesError(RuntimeError):
    """Base class for every error raised by the dataset loader."""


class TableReadError(NuScenesError):
    """Raised when a table file is missing or is not a list of records."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read table {path}: {reason}")


class DatasetValidationError(NuScenesError):
    """Raised while building the token graph. Always fatal to the load."""


class DuplicateToken(DatasetValidationError):
    def __init__(self, kind: str, token: str) -> None:
        self.kind = kind
        self.token = token
        if token:
            message = f"token {token} appears more than once in table '{kind}'"
        else:
            message = f"a record in table '{kind}' has an empty token"
        super().__init__(message)


class DanglingReference(DatasetValidationError):
    def __init__(self, kind: str, token: str, field: str, missing: str) -> None:
        self.kind = kind
        self.token = token
        self.field = field
        self.missing = missing
        if missing:
            message = f"{kind} {token}: field '{field}' refers to {missing}, which does not exist"
        else:
            message = f"{kind} {token}: required field '{field}' is empty"
        super().__init__(message)


class InvalidField(DatasetValidationError):
    """A record field is missing or has the wrong type."""

    def __init__(self, kind: str, token: str, field: str, reason: str) -> None:
        self.kind = kind
        self.token = token
        self.field = field
        self.reason = reason
        super().__init__(f"{kind} {token}: field '{field}' {reason}")


class BrokenChain(DatasetValidationError):
    def __init__(self, kind: str, token: str, reason: str) -> None:
        self.kind = kind
        self.token = token
        self.reason = reason
        super().__init__(f"broken {kind} chain at {token}: {reason}")


class CyclicChain(DatasetValidationError):
    def __init__(self, kind: str, token: str, parent: str) -> None:
        self.kind = kind
        self.token = token
        self.parent = parent
        super().__init__(f"{kind} chain of {parent} revisits {token}")


class InconsistentChain(DatasetValidationError):
    def __init__(
        self,
        kind: str,
        parent: str,
        reason: str,
        unexpected: frozenset[str] = frozenset(),
        unreached: frozenset[str] = frozenset(),
    ) -> None:
        self.kind = kind
        self.parent = parent
        self.reason = reason
        self.unexpected = unexpected
        self.unreached = unreached
        super().__init__(f"{kind} chain of {parent} disagrees with its grouping: {reason}")


class NotFound(NuScenesError, KeyError):
    """Raised by token lookups. The dataset stays usable."""

    def __init__(self, kind: str, token: str) -> None:
        self.kind = kind
        self.token = token
        super().__init__(f"no {kind} with token {token}")

    def __str__(self) -> str:
        return str(self.args[0])


class PayloadError(NuScenesError):
    """Raised by payload loading. Scoped to a single load() call."""


class UnsupportedFormat(PayloadError):
    def __init__(self, fileformat: str, detail: str | None = None) -> None:
        self.fileformat = fileformat
        message = f"unsupported file format '{fileformat}'"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class CorruptPayload(PayloadError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"corrupted payload {path}: {reason}")


class PayloadIOError(PayloadError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"cannot read payload {path}: {reason}")
