from __future__ import annotations

import pytest

from pkgrel.core.errors import ErrorCode
from pkgrel.core.result import Err, Ok, is_err, is_ok


def test_ok() -> None:
    result = Ok(3)
    assert is_ok(result)
    assert not is_err(result)
    assert result.unwrap() == 3
    assert result.map(lambda v: v + 1) == Ok(4)
    with pytest.raises(ValueError):
        result.unwrap_err()


def test_err() -> None:
    result = Err("boom")
    assert is_err(result)
    assert result.unwrap_err() == "boom"
    assert result.map(lambda v: v) is result
    with pytest.raises(ValueError, match="boom"):
        result.unwrap()


def test_error_codes_are_stable() -> None:
    assert [int(c) for c in ErrorCode] == [0, 1, 2, 3, 4, 5]
    assert ErrorCode.OK.is_success
    assert str(ErrorCode.NETWORK_ERROR) == "network error"
