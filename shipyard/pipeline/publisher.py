"""Artifact publishing.

Each built binary is packed into an archive whose name depends only on the
executable name and the target triple, then uploaded to the draft release for
the tag. Identical inputs always produce the same name and the same bytes, so
re-running a release overwrites assets instead of piling up duplicates.
"""

from __future__ import annotations

import gzip
import hashlib
import io
import tarfile
from dataclasses import dataclass
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from shipyard.core.result import Err, Ok, Result
from shipyard.output.console import ConsoleProtocol, Style
from shipyard.pipeline.errors import PublishError
from shipyard.pipeline.model import ReleaseHandle
from shipyard.pipeline.store import ReleaseStore
from shipyard.platform.detection import Platform, target_platform

__all__ = ["ArtifactPublisher", "asset_name", "package_artifact"]

# ZIP cannot represent timestamps before 1980.
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
_EXEC_MODE = 0o755


def asset_name(executable_name: str, target: str) -> str:
    """Release asset filename, e.g. ``tool-x86_64-unknown-linux-gnu.tar.gz``."""
    ext = "zip" if target_platform(target) == Platform.WINDOWS else "tar.gz"
    return f"{executable_name}-{target}.{ext}"


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _write_tar_gz(archive: Path, *, src: Path, arcname: str) -> None:
    data = src.read_bytes()
    info = tarfile.TarInfo(name=arcname)
    info.size = len(data)
    info.mode = _EXEC_MODE
    info.mtime = 0
    info.uid = info.gid = 0
    info.uname = info.gname = ""

    # gzip stores its own mtime and filename; pin both.
    with archive.open("wb") as raw:
        with gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as gz:
            with tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar:
                tar.addfile(info, io.BytesIO(data))


def _write_zip(archive: Path, *, src: Path, arcname: str) -> None:
    info = ZipInfo(filename=arcname, date_time=_ZIP_EPOCH)
    info.compress_type = ZIP_DEFLATED
    info.external_attr = (0o100000 | _EXEC_MODE) << 16
    with ZipFile(archive, "w", compression=ZIP_DEFLATED) as zf:
        zf.writestr(info, src.read_bytes())


def package_artifact(artifact_path: Path, *, out_dir: Path, name: str) -> Path:
    """Pack ``artifact_path`` into ``out_dir/name``.

    The archive holds a single member, the binary under its own file name.

    Raises:
        OSError: when the binary cannot be read or the archive written.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    archive = out_dir / name
    if name.endswith(".zip"):
        _write_zip(archive, src=artifact_path, arcname=artifact_path.name)
    else:
        _write_tar_gz(archive, src=artifact_path, arcname=artifact_path.name)
    return archive


@dataclass(frozen=True, slots=True)
class PublishedAsset:
    handle: ReleaseHandle
    name: str
    sha256: str


class ArtifactPublisher:
    """Uploads one built artifact per call to the release for a tag.

    The release is created as a draft on first use. This class never makes a
    release public.
    """

    def __init__(
        self,
        *,
        store: ReleaseStore,
        staging_dir: Path,
        console: ConsoleProtocol,
        draft: bool = True,
    ) -> None:
        self._store = store
        self._staging_dir = staging_dir
        self._console = console
        self._draft = draft

    def publish(
        self,
        *,
        tag: str,
        executable_name: str,
        artifact_path: Path,
        target: str,
    ) -> Result[ReleaseHandle, PublishError]:
        result = self.publish_asset(
            tag=tag,
            executable_name=executable_name,
            artifact_path=artifact_path,
            target=target,
        )
        return result.map(lambda asset: asset.handle)

    def publish_asset(
        self,
        *,
        tag: str,
        executable_name: str,
        artifact_path: Path,
        target: str,
    ) -> Result[PublishedAsset, PublishError]:
        handle = self._store.get_or_create_release(tag, draft=self._draft)
        if isinstance(handle, Err):
            return handle

        name = asset_name(executable_name, target)
        try:
            archive = package_artifact(
                artifact_path, out_dir=self._staging_dir / target, name=name
            )
            digest = _sha256_file(archive)
        except OSError as e:
            return Err(
                PublishError(
                    kind="package_failed",
                    message=f"failed to package {artifact_path.name} for {target}",
                    hint=str(e),
                )
            )

        uploaded = self._store.upload_file(handle.value, archive, name)
        if isinstance(uploaded, Err):
            return uploaded

        handle.value.record(name)
        self._console.print(f"{name} sha256={digest}", Style.DIM)
        return Ok(PublishedAsset(handle=handle.value, name=name, sha256=digest))
