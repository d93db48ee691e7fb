"""Package store: receives uploaded packages onto disk and owns their metadata records."""

import asyncio
import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from deploy_console.application.exceptions import (
    PackageEmptyError,
    PersistenceFailedError,
    UploadFailedError,
)
from deploy_console.application.package_repository import PackageRepository
from deploy_console.domain.models.action import PackageUpload
from deploy_console.domain.models.cluster import AppPackageRecord, parse_app_id

PACKAGE_SUFFIX = ".tgz"
_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class ReceivedPackage:
    """A package copied into the package directory."""

    filename: str
    path: str
    size: int

    @property
    def app_id(self) -> str:
        if self.filename.endswith(PACKAGE_SUFFIX):
            return self.filename[: -len(PACKAGE_SUFFIX)]
        return self.filename


def _safe_filename(filename: Optional[str]) -> str:
    """Basename of a client-supplied file name (either slash style)."""
    if not filename:
        return ""
    return posixpath.basename(filename.replace("\\", "/")).strip()


class PackageStore:
    """
    Only owner of AppPackageRecord rows. save() failures abort a publish;
    delete() failures are logged and swallowed because the remote delete is the
    operation of record.
    """

    def __init__(
        self,
        repository: PackageRepository,
        package_dir: str,
        max_package_bytes: int,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._repository = repository
        self._package_dir = Path(package_dir)
        self._max_bytes = max_package_bytes
        self._logger = logger or logging.getLogger(__name__)

    async def receive(self, cluster_code: str, upload: Optional[PackageUpload]) -> ReceivedPackage:
        """Copy the upload to <package_dir>/<cluster_code>/<filename>."""
        filename = _safe_filename(upload.filename if upload else None)
        if upload is None or upload.file is None or not filename:
            raise PackageEmptyError("app package empty")
        target = self._package_dir / cluster_code / filename
        try:
            size = await asyncio.to_thread(self._copy, upload.file, target)
        except OSError as e:
            raise UploadFailedError(f"receive app package {filename} failed: {e}") from e
        if size == 0:
            target.unlink(missing_ok=True)
            raise PackageEmptyError("app package empty")
        self._logger.info(
            "package_received",
            extra={"cluster_code": cluster_code, "package": filename, "size": size},
        )
        return ReceivedPackage(filename=filename, path=str(target), size=size)

    def _copy(self, source: BinaryIO, target: Path) -> int:
        target.parent.mkdir(parents=True, exist_ok=True)
        size = 0
        with open(target, "wb") as out:
            while True:
                chunk = source.read(_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > self._max_bytes:
                    out.close()
                    target.unlink(missing_ok=True)
                    raise UploadFailedError(
                        f"app package exceeds the {self._max_bytes} byte limit"
                    )
                out.write(chunk)
        return size

    @staticmethod
    def record_for(cluster_code: str, package: ReceivedPackage, uploaded_by: str) -> AppPackageRecord:
        info = parse_app_id(package.app_id)
        return AppPackageRecord(
            cluster_code=cluster_code,
            app_id=info.id,
            app_name=info.name,
            weight=info.weight,
            package_path=package.path,
            uploaded_by=uploaded_by,
        )

    async def save(self, record: AppPackageRecord) -> None:
        try:
            await self._repository.save(record)
        except Exception as e:
            self._logger.error(
                "package_save_failed",
                extra={"cluster_code": record.cluster_code, "app_id": record.app_id, "error": str(e)},
            )
            raise PersistenceFailedError(f"save app package {record.app_id} failed: {e}") from e

    async def delete(self, cluster_code: str, app_id: str) -> bool:
        """Best effort. Returns False (and logs) on failure."""
        try:
            await self._repository.delete(cluster_code, app_id)
        except Exception as e:
            self._logger.error(
                "package_delete_failed",
                extra={"cluster_code": cluster_code, "app_id": app_id, "error": str(e)},
            )
            return False
        return True

    async def get(self, cluster_code: str, app_id: str) -> Optional[AppPackageRecord]:
        try:
            return await self._repository.get(cluster_code, app_id)
        except Exception as e:
            raise PersistenceFailedError(
                f"load app package {app_id} failed: {e}",
                code="ERROR_LOAD_APP_PACKAGE_FAILED",
            ) from e
