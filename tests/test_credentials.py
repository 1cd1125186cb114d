"""Tests for the rotating credential pool."""

from collections import Counter
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.translation.credentials import CredentialPool


class TestCredentialPool:
    def test_round_robin_wraps(self) -> None:
        pool = CredentialPool(["a", "b", "c"])
        assert [pool.next_credential() for _ in range(7)] == ["a", "b", "c", "a", "b", "c", "a"]

    def test_single_key(self) -> None:
        pool = CredentialPool(["only"])
        assert {pool.next_credential() for _ in range(5)} == {"only"}

    def test_keys_are_stripped(self) -> None:
        pool = CredentialPool([" a ", "b\n"])
        assert [pool.next_credential(), pool.next_credential()] == ["a", "b"]

    def test_empty_pool_rejected(self) -> None:
        with pytest.raises(ValueError):
            CredentialPool([])

    def test_blank_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            CredentialPool(["a", "  "])

    def test_len(self) -> None:
        assert len(CredentialPool(["a", "b"])) == 2

    def test_repr_masks_keys(self) -> None:
        pool = CredentialPool(["AIzaSySecretValue123"])
        assert "SecretValue" not in repr(pool)
        assert "AIza" in repr(pool)

    def test_concurrent_callers_share_one_cursor(self) -> None:
        pool = CredentialPool(["a", "b", "c", "d"])
        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: pool.next_credential(), range(400)))
        assert Counter(results) == {"a": 100, "b": 100, "c": 100, "d": 100}
