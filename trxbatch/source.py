import logging
from pathlib import Path


logger = logging.getLogger(__name__)

INPUT_SUFFIX = ".txt"


class DirectorySource:
    def __init__(self, directory: str | Path, suffix: str = INPUT_SUFFIX) -> None:
        self.directory = Path(directory)
        self.suffix = suffix

    def list_files(self) -> list[Path]:
        """Return eligible input files sorted by name, or an empty list."""
        if not self.directory.is_dir():
            logger.warning("input directory not found", extra={"input_dir": str(self.directory)})
            return []

        files = sorted(
            (path for path in self.directory.iterdir() if path.is_file() and path.name.endswith(self.suffix)),
            key=lambda path: path.name,
        )
        if not files:
            logger.warning("no input files found", extra={"input_dir": str(self.directory), "suffix": self.suffix})
        return files
