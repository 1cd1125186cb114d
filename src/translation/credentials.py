"""Round-robin pool of caller-supplied API keys."""

import itertools


class CredentialPool:
    """Hands out API keys in rotation, one per outbound attempt.

    The cursor is a shared ``itertools.count``, so concurrent callers never
    receive the same rotation index.

    Args:
        api_keys: Ordered, non-empty sequence of keys.
    """

    def __init__(self, api_keys: list[str] | tuple[str, ...]) -> None:
        keys = tuple(key.strip() for key in api_keys)
        if not keys:
            raise ValueError("At least one API key is required")
        if any(not key for key in keys):
            raise ValueError("API keys must not be blank")
        self._keys = keys
        self._cursor = itertools.count()

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        masked = ", ".join(f"{key[:4]}…" for key in self._keys)
        return f"CredentialPool([{masked}])"

    def next_credential(self) -> str:
        return self._keys[next(self._cursor) % len(self._keys)]
