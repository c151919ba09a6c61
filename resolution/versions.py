"""Version parsing, ordering and game-version compatibility checks.

Versions look like ``1.20.4``, ``1.19.8-rc.2`` or ``v2.0``. Supported game
versions may also end in a ``.x`` wildcard (``1.20.x``) meaning any patch of
that major.minor. Ordering only ever looks at the numeric
(major, minor, patch) triplet; the prerelease tag is informational and is
used by the selector to prefer stable releases.
"""

import re
from typing import NamedTuple, Tuple

_WILDCARDS = {"x", "X", "*"}
_LEADING_DIGITS = re.compile(r"^\d+")


class Version(NamedTuple):
    major: int
    minor: int
    patch: int
    prerelease: str = ""
    # Number of numeric components actually written in the source string.
    precision: int = 3
    wildcard: bool = False

    @property
    def triplet(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def has_patch(self) -> bool:
        return self.precision >= 3 and not self.wildcard


def _to_int(part):
    match = _LEADING_DIGITS.match(part.strip())
    return int(match.group(0)) if match else 0


def parse_version(text) -> Version:
    """Parse a version string. Missing numeric components default to 0."""
    text = (text or "").strip()
    if text[:1] in ("v", "V"):
        text = text[1:]

    core, _, prerelease = text.partition("-")
    parts = [p for p in core.split(".") if p != ""]

    wildcard = False
    if parts and parts[-1] in _WILDCARDS:
        wildcard = True
        parts = parts[:-1]

    numbers = [_to_int(p) for p in parts[:3]]
    precision = len(numbers)
    numbers += [0] * (3 - len(numbers))

    return Version(numbers[0], numbers[1], numbers[2], prerelease, precision, wildcard)


def _coerce(version):
    return version if isinstance(version, Version) else parse_version(version)


def compare_versions(a, b) -> int:
    """Return -1, 0 or 1 comparing the numeric triplets of ``a`` and ``b``."""
    left, right = _coerce(a).triplet, _coerce(b).triplet
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def version_sort_key(version):
    return _coerce(version).triplet


def is_prerelease(version) -> bool:
    return bool(_coerce(version).prerelease)


def is_exact_match(target, candidate) -> bool:
    """Same major, minor and patch. A wildcard on either side ignores the patch."""
    t, c = _coerce(target), _coerce(candidate)
    if (t.major, t.minor) != (c.major, c.minor):
        return False
    if t.wildcard or c.wildcard:
        return True
    return t.patch == c.patch


def is_minor_match(target, candidate) -> bool:
    """Same major.minor, and not declared for a later patch than the target."""
    t, c = _coerce(target), _coerce(candidate)
    if (t.major, t.minor) != (c.major, c.minor):
        return False
    if t.has_patch and c.has_patch:
        return c.patch <= t.patch
    return True


def is_below_match(target, candidate) -> bool:
    """Candidate triplet strictly older than the target."""
    return _coerce(candidate).triplet < _coerce(target).triplet
