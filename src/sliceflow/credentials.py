"""Shared pool of interchangeable API keys."""

from collections.abc import Iterable, Iterator

from sliceflow.config import ConfigurationError, load_credentials


class CredentialPool:
    """Ordered, immutable list of API keys.

    Key selection is a pure function of (chunk index, attempt), so the pool
    can be shared by concurrent dispatches without locking. Starting each
    chunk at a different key spreads first attempts across the pool.
    """

    def __init__(self, tokens: Iterable[str]) -> None:
        cleaned = tuple(str(t).strip() for t in tokens)
        if not cleaned:
            raise ConfigurationError("CredentialPool requires at least one credential")
        if any(not t for t in cleaned):
            raise ConfigurationError("CredentialPool credentials must be non-empty strings")
        self._tokens = cleaned

    @classmethod
    def from_env(cls, value: str | None = None) -> "CredentialPool":
        return cls(load_credentials(value))

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __getitem__(self, index: int) -> str:
        return self._tokens[index]

    def __repr__(self) -> str:
        return f"CredentialPool(size={len(self)})"

    def select(self, chunk_index: int, attempt: int) -> int:
        """Index of the key to use for ``attempt`` on chunk ``chunk_index``."""
        return (chunk_index + attempt) % len(self._tokens)

    def mask(self, index: int) -> str:
        """Printable hint for a key, never the key itself."""
        return f"...{self._tokens[index][-4:]}"
