# Copyright (c) Syntropy Systems
"""File selection and upload of raw ad-spend exports."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Union

from growthai.errors import GatewayError, PreconditionError, ValidationError
from growthai.events import Notifier

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from growthai.client import GatewayClient
    from growthai.models.api import UploadResult

logger = logging.getLogger(__name__)

CSV_SUFFIX = ".csv"
SAMPLE_NAME = "sample.csv"
UPLOAD_FAILED = "Failed to upload CSV"


@dataclass(frozen=True)
class CandidateFile:
    """A file picked by the user, held in memory until upload."""

    name: str
    content: bytes

    @classmethod
    def from_path(cls, path: Path) -> CandidateFile:
        return cls(path.name, path.read_bytes())


def read_sample(sample_path: str | None = None) -> CandidateFile:
    """Load the demo dataset, bundled with the package unless overridden."""
    if sample_path:
        content = Path(sample_path).read_bytes()
    else:
        content = resources.files("growthai").joinpath("data", SAMPLE_NAME).read_bytes()
    return CandidateFile(SAMPLE_NAME, content)


class UploadCoordinator:
    """Owns the selected file and the single in-flight upload.

    Successful uploads replace ``result`` and are announced to every success
    listener; failures only set ``error`` and leave ``result`` alone.
    """

    def __init__(
        self,
        client: GatewayClient,
        notifier: Notifier | None = None,
        sample_path: str | None = None,
    ) -> None:
        self._client = client
        self._notifier = notifier or Notifier()
        self._sample_path = sample_path
        self._busy = False
        self._listeners: list[Callable[[UploadResult], Awaitable[object]]] = []
        self.selected: CandidateFile | None = None
        self.result: UploadResult | None = None
        self.error: str | None = None

    @property
    def busy(self) -> bool:
        """True while an upload request is in flight."""
        return self._busy

    def on_success(self, listener: Callable[[UploadResult], Awaitable[object]]) -> None:
        """Register a coroutine function called with each new upload result."""
        self._listeners.append(listener)

    def select_file(self, candidate: Union[CandidateFile, Path, str]) -> CandidateFile:
        """Select a file for upload.

        Raises:
            ValidationError: If the file is not a CSV or cannot be read. The
                previous selection is kept.

        """
        if not isinstance(candidate, CandidateFile):
            path = Path(candidate)
            if not path.name.endswith(CSV_SUFFIX):
                self.error = "Please select a valid CSV file"
                raise ValidationError(self.error)
            try:
                candidate = CandidateFile.from_path(path)
            except OSError as e:
                self.error = f"Could not read {path.name}: {e.strerror or e}"
                raise ValidationError(self.error) from e
        elif not candidate.name.endswith(CSV_SUFFIX):
            self.error = "Please select a valid CSV file"
            raise ValidationError(self.error)

        self.selected = candidate
        self.error = None
        return candidate

    async def submit(self) -> UploadResult | None:
        """Upload the selected file.

        Returns the new result, or None when the upload failed or another
        upload was already in flight.

        Raises:
            PreconditionError: If no file has been selected.

        """
        if self.selected is None:
            self.error = "Please select a file first"
            raise PreconditionError(self.error)
        if self._busy:
            logger.debug("Upload already in flight, ignoring submit")
            return None

        candidate = self.selected
        self._busy = True
        self.error = None
        try:
            result = await self._client.upload_csv(candidate.name, candidate.content)
        except GatewayError as e:
            self.error = e.display_message(UPLOAD_FAILED)
            logger.warning("Upload of %s failed: %s", candidate.name, e)
            self._notifier.error(self.error)
            return None
        finally:
            self._busy = False

        self.result = result
        logger.info(
            "Uploaded %s: %d clean, %d dropped, %d merged",
            candidate.name,
            result.cleaned_rows,
            result.dropped_rows,
            result.duplicates_merged,
        )
        self._notifier.success("CSV processed successfully")
        for listener in list(self._listeners):
            await listener(result)
        return result

    async def load_sample(self) -> UploadResult | None:
        """Select the demo dataset and upload it through the normal path.

        Does nothing while another upload is in flight.
        """
        if self._busy:
            logger.debug("Upload already in flight, ignoring sample load")
            return None
        self.select_file(read_sample(self._sample_path))
        return await self.submit()
