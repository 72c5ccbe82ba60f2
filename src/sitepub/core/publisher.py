"""Publishing a generated site to a git branch"""

import logging
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from pydantic import BaseModel

from sitepub.core.errors import PublishError
from sitepub.core.workspace import Workspace


logger = logging.getLogger(__name__)

GIT_TIMEOUT = 300


class PublishConfig(BaseModel):
    repo_url:     str
    branch:       str = "gh-pages"
    auth_token:   str = ""
    commit_name:  str = "Clio Bot"
    commit_email: str = "clio@localhost"
    use_ssh:      bool = True


class PublishResult(BaseModel):
    commit_hash: str = ""
    commit_url:  str = ""
    added:       int = 0
    modified:    int = 0
    deleted:     int = 0
    no_changes:  bool = False


class Publisher(ABC):
    @abstractmethod
    def publish(self, config: PublishConfig, slug: str) -> PublishResult:
        """Push the site's generated HTML. Raises PublishError."""
        raise NotImplementedError


def validate_config(config: PublishConfig) -> None:
    if not config.repo_url:
        raise PublishError("repository URL is required")
    if not config.branch:
        raise PublishError("branch name is required")
    if not config.use_ssh and not config.auth_token:
        raise PublishError("auth token is required when not using SSH")
    if not config.commit_email:
        raise PublishError("commit email is required")


def authenticated_url(repo_url: str, token: str) -> str:
    """https URL carrying the token as oauth2 credentials."""
    parts = urlsplit(repo_url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit(parts._replace(netloc=f"oauth2:{quote(token, safe='')}@{host}"))


def count_changes(porcelain: str) -> tuple[int, int, int]:
    """(added, modified, deleted) from `git status --porcelain` output."""
    added = modified = deleted = 0
    for line in porcelain.splitlines():
        code = line[:2]
        if "?" in code or "A" in code:
            added += 1
        elif "D" in code:
            deleted += 1
        elif code.strip():
            modified += 1
    return added, modified, deleted


class GitPublisher(Publisher):
    """Drives the git executable: clone, replace the tree with html/, commit, force-push."""

    def __init__(self, workspace: Workspace, git: str = "git"):
        self.workspace = workspace
        self.git = git

    def _run(self, *args: str, cwd: Path = None, secret: str = "") -> str:
        try:
            proc = subprocess.run(
                [self.git, *args], cwd=cwd, capture_output=True, text=True, timeout=GIT_TIMEOUT,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise PublishError(f"git {args[0]} failed: {e}") from e
        if proc.returncode != 0:
            stderr = proc.stderr.strip()
            if secret:
                stderr = stderr.replace(secret, "***")
            raise PublishError(f"git {args[0]} failed: {stderr}")
        return proc.stdout

    def publish(self, config: PublishConfig, slug: str) -> PublishResult:
        validate_config(config)
        source = self.workspace.html_path(slug)
        if not source.is_dir():
            raise PublishError(f"source directory not found: {source}")

        remote = config.repo_url if config.use_ssh else authenticated_url(config.repo_url, config.auth_token)
        secret = "" if config.use_ssh else config.auth_token

        with tempfile.TemporaryDirectory(prefix="sitepub-publish-") as tmp:
            repo = Path(tmp) / "repo"
            self._run("clone", remote, str(repo), secret=secret)
            try:
                self._run("checkout", config.branch, cwd=repo)
            except PublishError:
                self._run("checkout", "-b", config.branch, cwd=repo)

            for entry in repo.iterdir():
                if entry.name == ".git":
                    continue
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            shutil.copytree(source, repo, dirs_exist_ok=True)

            self._run("add", "--all", ".", cwd=repo)
            self._run("config", "user.name", config.commit_name, cwd=repo)
            self._run("config", "user.email", config.commit_email, cwd=repo)
            status = self._run("status", "--porcelain", cwd=repo)
            if not status.strip():
                logger.info("No changes to publish for %s", slug)
                return PublishResult(no_changes=True)

            added, modified, deleted = count_changes(status)
            message = f"Deploy site - {datetime.now():%Y-%m-%d %H:%M:%S}"
            self._run("commit", "-m", message, cwd=repo)
            commit_hash = self._run("rev-parse", "HEAD", cwd=repo).strip()
            self._run("push", "--force", "origin", config.branch, cwd=repo, secret=secret)

        commit_url = f"{config.repo_url.removesuffix('.git')}/commit/{commit_hash}"
        logger.info("Published %s at %s", slug, commit_url)
        return PublishResult(
            commit_hash=commit_hash, commit_url=commit_url,
            added=added, modified=modified, deleted=deleted,
        )
