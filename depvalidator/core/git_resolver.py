"""Git tag resolver for depvalidator.

Determines the latest release of a git-hosted dependency by listing the
remote's tags (``git ls-remote --tags``) and choosing the highest valid
semantic version.

``ls-remote`` prints one ref per line::

    9fceb02d0ae598e95dc970b74767f19372d61af8\trefs/tags/v1.9.0
    a5c3785ed8d6a35868bc169f07e40e889087fd2e\trefs/tags/v2.0.0^{}

Annotated tags appear twice, once with the ``^{}`` dereference suffix; the
suffix is stripped before validation.

When a repository is configured with an access token, it is spliced into
the URL as inline credentials (``https://<token>@host/...``). The token is
registered with the log redaction filter and scrubbed from every error
message.
"""

from __future__ import annotations

import os
import asyncio
from typing import List, Optional, Protocol, Union
from urllib.parse import urlsplit, urlunsplit

from depvalidator.constants import DEFAULT_TIMEOUT, GIT_EXECUTABLE
from depvalidator.exceptions import GitResolverError
from depvalidator.utils.logger import get_logger, redact, register_secret
from depvalidator.utils.process import CommandRunner, run_command
from depvalidator.utils.version_utils import is_valid_semver, max_semver

logger = get_logger("git_resolver")

__all__ = [
    "TagResolver",
    "GitTagResolver",
    "authenticated_url",
    "parse_ls_remote_tags",
    "select_latest_semver",
]

_TAG_PREFIX = "refs/tags/"
_DEREF_SUFFIX = "^{}"


class TagResolver(Protocol):
    """Capability: resolve the latest release tag of a git repository."""

    async def resolve_latest_tag(
        self,
        repo_url: str,
        token: Optional[str] = None,
    ) -> str:
        """Return the latest tag or raise a ``DepValidatorError``."""
        ...


def authenticated_url(repo_url: str, token: Optional[str] = None) -> str:
    """Embed ``token`` into ``repo_url`` as inline credentials.

    The URL is returned unchanged when no token is given or when it has no
    ``scheme://host`` form (e.g. scp-style ``git@host:org/repo``).

    Example::

        >>> authenticated_url("https://github.com/org/repo.git", "s3cr3t")
        'https://s3cr3t@github.com/org/repo.git'
    """
    if not token:
        return repo_url

    parts = urlsplit(repo_url)
    if not parts.scheme or not parts.netloc:
        logger.debug("Cannot embed credentials into non-URL remote")
        return repo_url

    host = parts.netloc.rpartition("@")[2]
    return urlunsplit(parts._replace(netloc=f"{token}@{host}"))


def parse_ls_remote_tags(output: Union[bytes, str]) -> List[str]:
    """Extract tag names from ``git ls-remote --tags`` output.

    Dereference suffixes are stripped and duplicates removed; first
    occurrence order is kept.
    """
    text = output.decode("utf-8", errors="replace") if isinstance(output, bytes) else output
    tags: List[str] = []
    seen = set()

    for line in text.splitlines():
        if _TAG_PREFIX not in line:
            continue
        tag = line.split(_TAG_PREFIX, 1)[1].strip()
        if tag.endswith(_DEREF_SUFFIX):
            tag = tag[: -len(_DEREF_SUFFIX)]
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)

    return tags


def select_latest_semver(tags: List[str], repo_url: Optional[str] = None) -> str:
    """Return the highest semver tag.

    Raises:
        GitResolverError: No tag is a valid semantic version.
    """
    ignored = [tag for tag in tags if not is_valid_semver(tag)]
    if ignored:
        logger.debug("Ignoring %d non-semver tag(s): %s", len(ignored), ", ".join(ignored))

    latest = max_semver(tags)
    if latest is None:
        raise GitResolverError("no valid semver tags found", repo_url=repo_url)
    return latest


class GitTagResolver:
    """Resolve the latest tag of a remote via ``git ls-remote``.

    Args:
        runner: Async command runner (replaced by fakes in tests).
        timeout: Seconds before the listing is abandoned.
        git_executable: Name or path of the git binary.
    """

    def __init__(
        self,
        *,
        runner: CommandRunner = run_command,
        timeout: float = DEFAULT_TIMEOUT,
        git_executable: str = GIT_EXECUTABLE,
    ) -> None:
        self.runner = runner
        self.timeout = timeout
        self.git_executable = git_executable

    async def list_tags(self, repo_url: str, token: Optional[str] = None) -> List[str]:
        """Return every tag advertised by ``repo_url``.

        Raises:
            GitResolverError: git is missing, exits non-zero, or times out.
        """
        register_secret(token)
        url = authenticated_url(repo_url, token)
        safe_url = redact(repo_url, token)
        args = [self.git_executable, "ls-remote", "--tags", url]
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}

        logger.debug("Listing tags for %s", safe_url)

        try:
            result = await self.runner(args, timeout=self.timeout, env=env)
        except asyncio.TimeoutError as exc:
            raise GitResolverError(
                f"git ls-remote timed out after {self.timeout:g}s",
                repo_url=safe_url,
            ) from exc
        except OSError as exc:
            raise GitResolverError(
                f"failed to run {self.git_executable}: {exc.strerror or exc}",
                repo_url=safe_url,
            ) from exc

        if not result.ok:
            raise GitResolverError(
                f"git ls-remote exited with status {result.returncode}",
                repo_url=safe_url,
                stderr=redact(result.stderr_text, token),
            )

        tags = parse_ls_remote_tags(result.stdout)
        logger.debug("Found %d tag(s) for %s", len(tags), safe_url)
        return tags

    async def resolve_latest_tag(
        self,
        repo_url: str,
        token: Optional[str] = None,
    ) -> str:
        """Return the highest semver tag of ``repo_url``.

        Raises:
            GitResolverError: The listing failed or held no semver tag.
        """
        tags = await self.list_tags(repo_url, token)
        return select_latest_semver(tags, repo_url=redact(repo_url, token))
