"""Parsing of ``group:artifact[:version]`` coordinates."""

from __future__ import annotations

from dataclasses import dataclass, replace

from hipo_cli.errors import CoordinateError

COORDINATE_USAGE = "<group:artifact[:version]>"

_PATH_SEPARATORS = ("/", "\\")


def segment_problem(segment: str) -> str | None:
    """Return why *segment* cannot name a repository or cache path component.

    Returns ``None`` for an acceptable segment.
    """
    if not segment:
        return "is empty"
    if segment != segment.strip():
        return "has surrounding whitespace"
    if any(sep in segment for sep in _PATH_SEPARATORS):
        return "contains a path separator"
    if segment in (".", ".."):
        return "is a relative path reference"
    return None


def _group_problem(group: str) -> str | None:
    problem = segment_problem(group)
    if problem is None and not all(group.split(".")):
        # Empty labels would collapse into another group's path
        problem = "has an empty dot-separated label"
    return problem


@dataclass(frozen=True)
class Coordinate:
    """A remote artifact identifier.

    ``version`` is an opaque token; ``None`` means "latest release".
    Every segment maps onto one or more path components, so none may
    contain a path separator or be ``.``/``..``.
    """

    group: str
    artifact: str
    version: str | None = None

    def __post_init__(self) -> None:
        checks = [("group", _group_problem(self.group)), ("artifact", segment_problem(self.artifact))]
        if self.version is not None:
            checks.append(("version", segment_problem(self.version)))
        for label, problem in checks:
            if problem is not None:
                raise CoordinateError(f"Invalid coordinate '{self}': {label} {problem}")

    @property
    def group_path(self) -> str:
        """Return the group id with ``.`` separators translated to ``/``."""
        return self.group.replace(".", "/")

    @property
    def filename(self) -> str:
        if self.version is None:
            raise CoordinateError(f"Coordinate {self} has no version")
        return f"{self.artifact}-{self.version}.jar"

    def with_version(self, version: str) -> Coordinate:
        return replace(self, version=version)

    def __str__(self) -> str:
        parts = [self.group, self.artifact]
        if self.version is not None:
            parts.append(self.version)
        return ":".join(parts)


def parse_coordinate(text: str) -> Coordinate:
    """Parse *text* into a :class:`Coordinate`.

    Segments are taken literally; surrounding whitespace is rejected
    rather than trimmed.

    Args:
        text: A ``group:artifact`` or ``group:artifact:version`` string.

    Returns:
        Coordinate: The parsed coordinate.

    Raises:
        CoordinateError: If the segment count is not 2 or 3, or any
            segment is empty, padded with whitespace, contains a path
            separator or is ``.``/``..``.
    """
    parts = text.split(":")
    if len(parts) not in (2, 3) or not all(parts):
        raise CoordinateError(f"Invalid coordinate format '{text}'. Use {COORDINATE_USAGE}")

    try:
        return Coordinate(*parts)
    except CoordinateError as exc:
        raise CoordinateError(f"Invalid coordinate format '{text}'. Use {COORDINATE_USAGE} ({exc})") from exc
