"""Release stores.

A store holds release entries keyed by tag and the files attached to them.
Both implementations keep one ReleaseHandle per tag for the lifetime of the
store object, so every publisher in a run shares the same handle.

- GhReleaseStore: GitHub Releases through the `gh` CLI.
- LocalReleaseStore: one directory per tag, for offline runs and tests.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from shipyard.core.result import Err, Ok, Result
from shipyard.core.structured import as_str_dict, get_list, get_str
from shipyard.output.console import ConsoleProtocol, Style
from shipyard.pipeline.errors import PublishError
from shipyard.pipeline.gh import (
    GH_UPLOAD_TIMEOUT_SECONDS,
    ensure_gh_available,
    gh_error_hint,
    gh_json,
    is_not_found,
    repo_args,
    run_gh,
)
from shipyard.pipeline.model import ReleaseHandle, UploadAck

__all__ = ["GhReleaseStore", "LocalReleaseStore", "ReleaseStore"]


class ReleaseStore(Protocol):
    def get_or_create_release(
        self, tag: str, *, draft: bool = True
    ) -> Result[ReleaseHandle, PublishError]: ...

    def find_release(self, tag: str) -> Result[ReleaseHandle | None, PublishError]: ...

    def upload_file(
        self, handle: ReleaseHandle, local_path: Path, remote_name: str
    ) -> Result[UploadAck, PublishError]: ...

    def list_files(self, handle: ReleaseHandle) -> Result[frozenset[str], PublishError]: ...


class _HandleRegistry:
    """tag -> ReleaseHandle, with creation serialised per store."""

    def __init__(self) -> None:
        self._handles: dict[str, ReleaseHandle] = {}
        self._lock = threading.Lock()

    def get(self, tag: str) -> ReleaseHandle | None:
        with self._lock:
            return self._handles.get(tag)

    def get_or_create(
        self,
        tag: str,
        create: Callable[[], Result[ReleaseHandle, PublishError]],
    ) -> Result[ReleaseHandle, PublishError]:
        # Held across the remote call: two publishers racing on the first
        # upload must not create two releases for one tag.
        with self._lock:
            existing = self._handles.get(tag)
            if existing is not None:
                return Ok(existing)
            result = create()
            if isinstance(result, Ok):
                self._handles[tag] = result.value
            return result


# -----------------------------------------------------------------------------
# Local directory store
# -----------------------------------------------------------------------------

_META_NAME = ".release.json"


class LocalReleaseStore:
    """Releases as directories: ``<root>/<tag>/<file>`` plus a metadata file."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._registry = _HandleRegistry()

    @property
    def root(self) -> Path:
        return self._root

    def release_dir(self, tag: str) -> Path:
        return self._root / tag

    def _scan(self, tag: str) -> set[str]:
        d = self.release_dir(tag)
        # Skips the metadata file and in-flight upload temp files.
        return {p.name for p in d.iterdir() if p.is_file() and not p.name.startswith(".")}

    def _load(self, tag: str) -> ReleaseHandle | None:
        meta_path = self.release_dir(tag) / _META_NAME
        if not meta_path.is_file():
            return None
        meta = as_str_dict(json.loads(meta_path.read_text(encoding="utf-8"))) or {}
        draft = meta.get("draft")
        return ReleaseHandle(
            tag=tag,
            draft=draft if isinstance(draft, bool) else True,
            uploaded_files=self._scan(tag),
        )

    def _open(self, tag: str, draft: bool) -> Result[ReleaseHandle, PublishError]:
        try:
            existing = self._load(tag)
            if existing is not None:
                return Ok(existing)
            d = self.release_dir(tag)
            d.mkdir(parents=True, exist_ok=True)
            payload = json.dumps({"tag": tag, "draft": draft}, indent=2) + "\n"
            (d / _META_NAME).write_text(payload, encoding="utf-8")
        except (OSError, json.JSONDecodeError) as e:
            return Err(
                PublishError(
                    kind="release_failed",
                    message=f"failed to create release {tag}: {e}",
                    hint=str(self.release_dir(tag)),
                )
            )
        return Ok(ReleaseHandle(tag=tag, draft=draft))

    def get_or_create_release(
        self, tag: str, *, draft: bool = True
    ) -> Result[ReleaseHandle, PublishError]:
        return self._registry.get_or_create(tag, lambda: self._open(tag, draft))

    def find_release(self, tag: str) -> Result[ReleaseHandle | None, PublishError]:
        cached = self._registry.get(tag)
        if cached is not None:
            return Ok(cached)
        try:
            return Ok(self._load(tag))
        except (OSError, json.JSONDecodeError) as e:
            return Err(
                PublishError(kind="list_failed", message=f"failed to read release {tag}: {e}")
            )

    def upload_file(
        self, handle: ReleaseHandle, local_path: Path, remote_name: str
    ) -> Result[UploadAck, PublishError]:
        dest = self.release_dir(handle.tag) / remote_name
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{remote_name}.", dir=str(dest.parent))
            os.close(fd)
            tmp = Path(tmp_name)
            try:
                shutil.copyfile(local_path, tmp)
                os.replace(tmp, dest)
            finally:
                tmp.unlink(missing_ok=True)
        except OSError as e:
            return Err(
                PublishError(
                    kind="upload_failed",
                    message=f"upload failed: {remote_name}",
                    hint=str(e),
                )
            )
        return Ok(UploadAck(remote_name=remote_name, files=(remote_name,)))

    def list_files(self, handle: ReleaseHandle) -> Result[frozenset[str], PublishError]:
        try:
            return Ok(frozenset(self._scan(handle.tag)))
        except OSError as e:
            return Err(
                PublishError(kind="list_failed", message=f"failed to list {handle.tag}: {e}")
            )


# -----------------------------------------------------------------------------
# GitHub Releases via gh
# -----------------------------------------------------------------------------


class GhReleaseStore:
    """GitHub Releases driven through the `gh` CLI.

    Every gh call runs once. A failure is reported with gh's stderr and, for
    network errors, a hint to rerun; nothing is retried.
    """

    def __init__(
        self,
        *,
        cwd: Path,
        console: ConsoleProtocol,
        repo: str | None = None,
    ) -> None:
        self._cwd = cwd
        self._console = console
        self._repo = repo
        self._registry = _HandleRegistry()

    def _view(self, tag: str) -> Result[tuple[bool, frozenset[str]] | None, PublishError]:
        cmd = ["gh", "release", "view", tag, "--json", "tagName,isDraft,assets"]
        cmd += repo_args(self._repo)
        result = gh_json(cwd=self._cwd, cmd=cmd)
        if isinstance(result, Err):
            if is_not_found(result.error):
                return Ok(None)
            return Err(
                PublishError(
                    kind="list_failed",
                    message=f"gh release view failed: {tag}",
                    hint=gh_error_hint(result.error),
                )
            )

        data = as_str_dict(result.value)
        if data is None:
            return Err(
                PublishError(kind="list_failed", message=f"unexpected release payload: {tag}")
            )

        draft = data.get("isDraft")
        names: set[str] = set()
        for item in get_list(data, "assets") or []:
            asset = as_str_dict(item)
            if asset is None:
                continue
            name = get_str(asset, "name")
            if name is not None:
                names.add(name)
        return Ok((draft if isinstance(draft, bool) else True, frozenset(names)))

    def _view_or_create(self, tag: str, draft: bool) -> Result[ReleaseHandle, PublishError]:
        available = ensure_gh_available()
        if isinstance(available, Err):
            return available

        viewed = self._view(tag)
        if isinstance(viewed, Err):
            return viewed
        if viewed.value is not None:
            is_draft, names = viewed.value
            return Ok(ReleaseHandle(tag=tag, draft=is_draft, uploaded_files=set(names)))

        cmd = ["gh", "release", "create", tag, "--title", tag, "--notes", ""]
        if draft:
            cmd.append("--draft")
        cmd += repo_args(self._repo)
        self._console.print(" ".join(cmd[:4]) + " ...", Style.DIM)
        created = run_gh(cwd=self._cwd, cmd=cmd)
        if isinstance(created, Err):
            return Err(
                PublishError(
                    kind="release_failed",
                    message=f"failed to create release {tag}",
                    hint=gh_error_hint(created.error),
                )
            )
        return Ok(ReleaseHandle(tag=tag, draft=draft))

    def get_or_create_release(
        self, tag: str, *, draft: bool = True
    ) -> Result[ReleaseHandle, PublishError]:
        return self._registry.get_or_create(tag, lambda: self._view_or_create(tag, draft))

    def find_release(self, tag: str) -> Result[ReleaseHandle | None, PublishError]:
        cached = self._registry.get(tag)
        if cached is not None:
            return Ok(cached)

        viewed = self._view(tag)
        if isinstance(viewed, Err):
            return viewed
        if viewed.value is None:
            return Ok(None)
        is_draft, names = viewed.value
        return Ok(ReleaseHandle(tag=tag, draft=is_draft, uploaded_files=set(names)))

    def upload_file(
        self, handle: ReleaseHandle, local_path: Path, remote_name: str
    ) -> Result[UploadAck, PublishError]:
        # gh names the asset after the local file, so stage a renamed copy when needed.
        with tempfile.TemporaryDirectory(prefix="shipyard-upload-") as tmp:
            path = local_path
            if local_path.name != remote_name:
                path = Path(tmp) / remote_name
                try:
                    shutil.copyfile(local_path, path)
                except OSError as e:
                    return Err(
                        PublishError(
                            kind="upload_failed",
                            message=f"failed to stage {remote_name}",
                            hint=str(e),
                        )
                    )

            cmd = ["gh", "release", "upload", handle.tag, str(path), "--clobber"]
            cmd += repo_args(self._repo)
            self._console.print(f"gh release upload {handle.tag} {remote_name}", Style.DIM)
            result = run_gh(cwd=self._cwd, cmd=cmd, timeout=GH_UPLOAD_TIMEOUT_SECONDS)

        if isinstance(result, Err):
            return Err(
                PublishError(
                    kind="upload_failed",
                    message=f"upload failed: {remote_name}",
                    hint=gh_error_hint(result.error) or str(result.error),
                )
            )
        return Ok(UploadAck(remote_name=remote_name, files=(remote_name,)))

    def list_files(self, handle: ReleaseHandle) -> Result[frozenset[str], PublishError]:
        viewed = self._view(handle.tag)
        if isinstance(viewed, Err):
            return viewed
        if viewed.value is None:
            return Err(
                PublishError(kind="list_failed", message=f"release disappeared: {handle.tag}")
            )
        return Ok(viewed.value[1])
