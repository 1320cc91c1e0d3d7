"""Value types passed between pipeline stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class ClientCredentials:
    """OAuth client identity, fixed for the lifetime of the process."""

    client_id: str
    client_secret: str
    redirect_uri: str


@dataclass(frozen=True)
class MessageRef:
    """A message identifier as returned by the Gmail list endpoint."""

    id: str
    thread_id: str | None = None


@dataclass(frozen=True)
class MessageListing:
    """Result of a single capped list call.

    ``truncated`` is True when Gmail reported more matches than ``cap``.
    """

    refs: tuple[MessageRef, ...] = field(default_factory=tuple)
    cap: int = 500
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.refs)


@dataclass(frozen=True)
class EmailRecord:
    """Header metadata extracted from one message.

    On extraction failure ``error`` is set and every data field is None.
    """

    id: str
    to: str | None = None
    date: str | None = None
    timestamp: int | None = None
    error: str | None = None

    @classmethod
    def failed(cls, message_id: str, error: str) -> EmailRecord:
        return cls(id=message_id, error=error)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> EmailRecord:
        return cls(
            id=data["id"],
            to=data.get("to"),
            date=data.get("date"),
            timestamp=data.get("timestamp"),
            error=data.get("error"),
        )
