"""Last-modified resolution.

Precedence, first match wins:

    1. Manual override (by canonical path or by sitemap file name)
    2. Last commit date of the source file from version control
    3. Global fallback date
    4. Source file mtime (when enabled)
    5. No value

Every resolved value is normalized to an ISO date (YYYY-MM-DD) and clamped
to the build date so future dates never reach the published sitemap.
"""

import logging
import subprocess
from datetime import UTC, date, datetime
from pathlib import Path

from localemap.core.cache import LastModifiedCache

logger = logging.getLogger(__name__)


def utc_today() -> date:
    """Return the current UTC date."""
    return datetime.now(UTC).date()


def parse_date(value: object) -> date | None:
    """Parse a date-like value into a UTC date.

    Args:
        value: ISO string, date, datetime or POSIX timestamp

    Returns:
        Parsed date, or None when the value is empty or unparseable
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, int | float):
        try:
            return datetime.fromtimestamp(value, tz=UTC).date()
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        return parse_date(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def format_last_modified(value: object, today: date | None = None) -> str | None:
    """Normalize a date-like value to an ISO date, clamped to today.

    Args:
        value: Date-like value (see parse_date)
        today: Build date; defaults to the current UTC date

    Returns:
        ISO date string, or None when the value is unparseable
    """
    parsed = parse_date(value)
    if parsed is None:
        return None
    limit = today or utc_today()
    return min(parsed, limit).isoformat()


def latest_date(values: list[str | None]) -> str | None:
    """Return the latest ISO date of the given values, ignoring missing ones."""
    present = [value for value in values if value]
    return max(present) if present else None


class HistoryUnavailableError(Exception):
    """Raised when the version-control history cannot be queried."""


class GitHistory:
    """Queries git for the last commit date of a file.

    Commands are blocking and run once per file; callers are expected to
    cache results for the life of the build.
    """

    def __init__(self, repo_dir: Path | None = None, executable: str = "git") -> None:
        """Initialize history reader.

        Args:
            repo_dir: Working directory for git commands (default: cwd)
            executable: Git executable name or path
        """
        self._repo_dir = repo_dir
        self._executable = executable

    def last_commit_date(self, source_file: Path) -> str | None:
        """Return the committer date (YYYY-MM-DD) of the last commit touching a file.

        Args:
            source_file: File to look up

        Returns:
            Commit date, or None when the file has no commits

        Raises:
            HistoryUnavailableError: If git cannot be run or exits with an error
        """
        cwd = self._repo_dir or Path.cwd()
        try:
            target = source_file.resolve().relative_to(cwd.resolve())
        except ValueError:
            target = source_file

        try:
            result = subprocess.run(
                [self._executable, "log", "-1", "--pretty=format:%cs", "--", str(target)],
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise HistoryUnavailableError(f"Failed to run git: {e}") from e

        if result.returncode != 0:
            raise HistoryUnavailableError(
                f"git log exited with {result.returncode}: {result.stderr.strip()}",
            )

        output = result.stdout.strip()
        return output or None


class LastModifiedResolver:
    """Resolves last-modified dates with layered precedence."""

    def __init__(
        self,
        *,
        route_overrides: dict[str, str] | None = None,
        sitemap_overrides: dict[str, str] | None = None,
        history: GitHistory | None = None,
        cache: LastModifiedCache | None = None,
        fallback: str | None = None,
        use_mtime: bool = False,
        today: date | None = None,
    ) -> None:
        """Initialize resolver.

        Args:
            route_overrides: Manual dates keyed by canonical path
            sitemap_overrides: Manual dates keyed by sitemap file name
            history: Version-control reader; None disables history lookups
            cache: Cache for per-file results (default: new empty cache)
            fallback: Date used when history is unavailable
            use_mtime: Fall back to file mtime as a last resort
            today: Build date used for clamping (default: current UTC date)
        """
        self._today = today or utc_today()
        self._route_overrides = route_overrides or {}
        self._sitemap_overrides = sitemap_overrides or {}
        self._history = history
        self._cache = cache if cache is not None else LastModifiedCache()
        self._fallback = self.format(fallback)
        self._use_mtime = use_mtime

    @property
    def today(self) -> date:
        """Build date used for clamping."""
        return self._today

    @property
    def cache(self) -> LastModifiedCache:
        return self._cache

    def format(self, value: object) -> str | None:
        """Normalize a date-like value, clamped to the build date."""
        return format_last_modified(value, self._today)

    def manual_route(self, path: str) -> str | None:
        return self.format(self._route_overrides.get(path))

    def for_sitemap(self, filename: str) -> str | None:
        """Return the manual override for a sitemap document, if any."""
        return self.format(self._sitemap_overrides.get(filename))

    def for_route(self, path: str, source_file: Path | None = None) -> str | None:
        """Resolve the last-modified date of a canonical route.

        Args:
            path: Canonical path (for manual overrides)
            source_file: Source artifact behind the route, if known

        Returns:
            ISO date or None
        """
        return self.manual_route(path) or self.for_source(source_file)

    def for_source(self, source_file: Path | None) -> str | None:
        """Resolve the last-modified date of a source file (cached per file)."""
        if source_file is None or not source_file.exists():
            return None

        key = str(source_file)
        if key in self._cache:
            return self._cache.get(key)

        value = self._resolve_source(source_file)
        self._cache.set(key, value)
        return value

    def _resolve_source(self, source_file: Path) -> str | None:
        if self._history is not None:
            try:
                committed = self.format(self._history.last_commit_date(source_file))
            except HistoryUnavailableError as e:
                logger.debug(f"History unavailable for {source_file}: {e}")
            else:
                if committed is not None:
                    return committed

        if self._fallback is not None:
            return self._fallback

        if not self._use_mtime:
            return None

        try:
            return self.format(source_file.stat().st_mtime)
        except OSError:
            return None
