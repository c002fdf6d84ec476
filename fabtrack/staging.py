# fabtrack/staging.py
from typing import Iterable, Iterator, List

from fabtrack.config import logger as core_logger
from fabtrack.models import StagedFile

logger = core_logger.getChild("Staging")


class StagingBuffer:
    """Ordered, name-unique list of files picked for upload but not yet sent.

    Both the file picker and drag-and-drop go through `add`, so de-duplication
    is the same for either path. A file whose name is already staged is dropped.
    """

    def __init__(self):
        self._files: List[StagedFile] = []

    def add(self, files: Iterable[StagedFile]) -> List[StagedFile]:
        """Appends files not already staged by name, in selection order. Returns the ones added."""
        seen = {f.name for f in self._files}
        added = []
        for f in files:
            if f.name in seen:
                logger.debug(f"Skipping duplicate staged file '{f.name}'")
                continue
            seen.add(f.name)
            added.append(f)
        self._files.extend(added)
        return added

    def remove_at(self, index: int) -> None:
        if 0 <= index < len(self._files):
            del self._files[index]

    def clear(self) -> None:
        self._files = []

    @property
    def files(self) -> List[StagedFile]:
        return list(self._files)

    @property
    def names(self) -> List[str]:
        return [f.name for f in self._files]

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[StagedFile]:
        return iter(list(self._files))

    def __bool__(self) -> bool:
        return bool(self._files)
