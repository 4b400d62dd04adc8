"""Run-scoped artifact store.

Layout under ``<root>/<run_id>/``:

    mongo-task-generator          the stripped binary, named by asset name
    mongo-task-generator.sha256   "<hex>  <name>" (sha256sum format)
    .staging/                     in-flight copies, never listed

Names are write-once: committing a name that already exists fails, even when
two build runners race for it. Staged files become visible only through
``commit``, so a failed strip never leaves a partial artifact behind.

A run directory lives only as long as its run: `remove` deletes it once the
release is published or the run is abandoned.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from uuid import uuid4

from tagrel.core.result import Err, Ok, Result
from tagrel.pipeline.errors import StoreError
from tagrel.pipeline.model import Artifact
from tagrel.platform.files import atomic_write_text, sha256_file

_SIDECAR_SUFFIX = ".sha256"
_STAGING_DIR = ".staging"


def _check_name(name: str) -> Result[None, StoreError]:
    if (
        not name
        or name != Path(name).name
        or "\\" in name
        or name.startswith(".")
        or name.endswith(_SIDECAR_SUFFIX)
    ):
        return Err(StoreError(kind="invalid_name", message=f"invalid asset name: {name!r}"))
    return Ok(None)


class ArtifactStore:
    """Named-blob storage shared between build runners and the publisher."""

    def __init__(self, root: Path, run_id: str) -> None:
        if not run_id or run_id != Path(run_id).name or run_id.startswith("."):
            raise ValueError(f"invalid run id: {run_id!r}")
        self._root = root
        self._run_id = run_id

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def run_dir(self) -> Path:
        return self._root / self._run_id

    def _sidecar(self, name: str) -> Path:
        return self.run_dir / f"{name}{_SIDECAR_SUFFIX}"

    def stage(self, name: str, source: Path) -> Result[Path, StoreError]:
        """Copy ``source`` into the staging area and return the staged path."""
        check = _check_name(name)
        if isinstance(check, Err):
            return check

        staging = self.run_dir / _STAGING_DIR
        staged = staging / f"{name}.{uuid4().hex[:8]}.partial"
        try:
            staging.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, staged)
        except OSError as e:
            staged.unlink(missing_ok=True)
            return Err(StoreError(kind="io", message=f"failed to stage {name}: {e}", path=source))
        return Ok(staged)

    def discard(self, staged: Path) -> None:
        staged.unlink(missing_ok=True)

    def commit(
        self, name: str, staged: Path, *, target: str | None = None
    ) -> Result[Artifact, StoreError]:
        """Publish a staged file under ``name``; fails if the name is taken."""
        check = _check_name(name)
        if isinstance(check, Err):
            return check

        final = self.run_dir / name
        try:
            digest = sha256_file(staged)
            # link() refuses to overwrite, which makes the name write-once.
            os.link(staged, final)
        except FileExistsError:
            self.discard(staged)
            return Err(
                StoreError(
                    kind="exists",
                    message=f"artifact already stored for this run: {name}",
                    path=final,
                )
            )
        except OSError as e:
            self.discard(staged)
            return Err(StoreError(kind="io", message=f"failed to store {name}: {e}", path=final))

        self.discard(staged)
        try:
            atomic_write_text(self._sidecar(name), f"{digest}  {name}\n")
            size = final.stat().st_size
        except OSError as e:
            return Err(StoreError(kind="io", message=f"failed to record {name}: {e}", path=final))

        return Ok(Artifact(asset_name=name, path=final, size=size, sha256=digest, target=target))

    def put(
        self, name: str, source: Path, *, target: str | None = None
    ) -> Result[Artifact, StoreError]:
        staged = self.stage(name, source)
        if isinstance(staged, Err):
            return staged
        return self.commit(name, staged.value, target=target)

    def get(self, name: str) -> Result[Artifact, StoreError]:
        check = _check_name(name)
        if isinstance(check, Err):
            return check

        path = self.run_dir / name
        if not path.is_file():
            return Err(
                StoreError(
                    kind="missing",
                    message=f"artifact not found in run {self._run_id}: {name}",
                    path=path,
                )
            )

        sidecar = self._sidecar(name)
        try:
            line = sidecar.read_text(encoding="utf-8").strip()
            size = path.stat().st_size
        except FileNotFoundError:
            return Err(
                StoreError(kind="corrupt", message=f"checksum missing for {name}", path=sidecar)
            )
        except OSError as e:
            return Err(StoreError(kind="io", message=f"failed to read {name}: {e}", path=path))

        digest = line.split()[0] if line else ""
        if len(digest) != 64:
            return Err(
                StoreError(kind="corrupt", message=f"invalid checksum for {name}", path=sidecar)
            )
        return Ok(Artifact(asset_name=name, path=path, size=size, sha256=digest))

    def names(self) -> list[str]:
        if not self.run_dir.is_dir():
            return []
        return sorted(
            p.name
            for p in self.run_dir.iterdir()
            if p.is_file() and not p.name.startswith(".") and not p.name.endswith(_SIDECAR_SUFFIX)
        )

    def verify(self, artifact: Artifact) -> Result[None, StoreError]:
        """Recompute the checksum of a stored artifact."""
        try:
            actual = sha256_file(artifact.path)
        except OSError as e:
            return Err(StoreError(kind="io", message=str(e), path=artifact.path))
        if actual != artifact.sha256:
            return Err(
                StoreError(
                    kind="corrupt",
                    message=f"checksum mismatch for {artifact.asset_name}",
                    path=artifact.path,
                )
            )
        return Ok(None)

    def remove(self) -> Result[None, StoreError]:
        """Delete the whole run directory, staging area included."""
        if not self.run_dir.exists():
            return Ok(None)
        try:
            shutil.rmtree(self.run_dir)
        except OSError as e:
            return Err(
                StoreError(
                    kind="io",
                    message=f"failed to remove run {self._run_id}: {e}",
                    path=self.run_dir,
                )
            )
        return Ok(None)
