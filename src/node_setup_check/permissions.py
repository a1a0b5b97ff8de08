from __future__ import annotations

from dataclasses import dataclass

from node_setup_check.exceptions import InvalidModeError

PERMISSION_BITS = 0o777


@dataclass(frozen=True)
class Principal:
    read: bool
    write: bool
    execute: bool

    def has_any_access(self) -> bool:
        return self.read or self.write or self.execute

    def has_full_access(self) -> bool:
        return self.read and self.write and self.execute

    def symbolic(self) -> str:
        return (
            ("r" if self.read else "-")
            + ("w" if self.write else "-")
            + ("x" if self.execute else "-")
        )


@dataclass(frozen=True)
class PermissionTriple:
    user: Principal
    group: Principal
    other: Principal

    def symbolic(self) -> str:
        return self.user.symbolic() + self.group.symbolic() + self.other.symbolic()


def _principal(bits: int) -> Principal:
    return Principal(
        read=bool(bits & 0o4),
        write=bool(bits & 0o2),
        execute=bool(bits & 0o1),
    )


def classify(mode: int) -> PermissionTriple:
    """Split a 9-bit permission mode into user/group/other principals.

    Only ``0..0o777`` is accepted. File-type, setuid/setgid and sticky bits
    must be stripped by the caller.
    """
    if isinstance(mode, bool) or not isinstance(mode, int):
        raise InvalidModeError(f"unexpected file mode: {mode!r}")
    if mode < 0 or mode & ~PERMISSION_BITS:
        raise InvalidModeError(f"unexpected file mode: {mode:o}")
    return PermissionTriple(
        user=_principal(mode >> 6),
        group=_principal(mode >> 3),
        other=_principal(mode),
    )


def symbolic(mode: int) -> str:
    return classify(mode).symbolic()
