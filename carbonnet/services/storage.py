"""
File storage for exported report artifacts.
"""
import asyncio
import logging
import os
import tempfile
from pathlib import Path

from carbonnet.pydantic_models.report import ExportArtifact
from carbonnet.services.exceptions import ExportIOError

logger = logging.getLogger(__name__)


class ReportFileStorage:
    """
    Writes artifacts into a reports directory, one file per report id.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, so a reader never sees a partial file.
    """

    def __init__(self, base_dir: str | os.PathLike):
        self.base_dir = Path(base_dir)

    def path_for(self, file_name: str) -> Path:
        # File names come from report ids; never allow escaping base_dir
        return self.base_dir / Path(file_name).name

    def write(self, artifact: ExportArtifact) -> Path:
        """
        Write an artifact synchronously.

        Raises:
            ExportIOError: If the directory or file cannot be written
        """
        target = self.path_for(artifact.file_name)
        tmp_path = None
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.base_dir, prefix=f".{target.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(artifact.content)
            os.replace(tmp_path, target)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            logger.error(f"Failed to write report file {target}: {e}", exc_info=True)
            raise ExportIOError(f"Failed to write report file {target.name}", original_exception=e) from e

        logger.info(f"Stored report file {target} ({artifact.file_size} bytes)")
        return target

    async def save(self, artifact: ExportArtifact) -> Path:
        """Write an artifact in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.write, artifact)

    def read(self, file_name: str) -> bytes:
        """
        Raises:
            FileNotFoundError: If the artifact is missing
        """
        return self.path_for(file_name).read_bytes()

    def exists(self, file_name: str) -> bool:
        return self.path_for(file_name).is_file()

    def delete(self, file_name: str) -> bool:
        path = self.path_for(file_name)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Deleted report file {path}")
        return True
