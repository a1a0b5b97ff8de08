from __future__ import annotations

import stat

import pytest

from node_setup_check import permissions
from node_setup_check.exceptions import CheckAborted, InvalidModeError


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        (0o755, "rwxr-xr-x"),
        (0o700, "rwx------"),
        (0o644, "rw-r--r--"),
        (0o600, "rw-------"),
        (0o000, "---------"),
        (0o777, "rwxrwxrwx"),
        (0o421, "r---w---x"),
    ],
)
def test_symbolic_rendering(mode: int, expected: str) -> None:
    assert permissions.symbolic(mode) == expected


def test_classify_splits_principals() -> None:
    triple = permissions.classify(0o751)
    assert triple.user.has_full_access()
    assert triple.group.read and not triple.group.write and triple.group.execute
    assert triple.other.execute and not triple.other.read
    assert triple.other.has_any_access()
    assert not permissions.classify(0o700).group.has_any_access()


def test_classify_is_pure() -> None:
    assert permissions.classify(0o640) == permissions.classify(0o640)


@pytest.mark.parametrize("mode", [-1, 0o1000, 0o4755, 0o40755])
def test_classify_rejects_out_of_range_modes(mode: int) -> None:
    with pytest.raises(InvalidModeError):
        permissions.classify(mode)


@pytest.mark.parametrize("mode", [True, "755", 7.0, None])
def test_classify_rejects_non_integer_modes(mode: object) -> None:
    with pytest.raises(InvalidModeError) as excinfo:
        permissions.classify(mode)  # type: ignore[arg-type]
    assert isinstance(excinfo.value, CheckAborted)
    assert "unexpected file mode" in excinfo.value.message


@pytest.mark.parametrize("mode", range(0o1000))
def test_symbolic_matches_stat_filemode_for_every_mode(mode: int) -> None:
    assert permissions.symbolic(mode) == stat.filemode(stat.S_IFREG | mode)[1:]
