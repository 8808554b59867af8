"""Artifacts handed between tasks: the build context archive and the image id."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

# "sha256:" prefix length; the short id is the seven characters after it.
_SHORT_ID_START = 7
_SHORT_ID_END = 14


class ImageIdMissingError(RuntimeError):
    """Raised when the image-id file is absent, empty or malformed."""


class ContextArchive(BaseModel):
    """A gzip tar used as the ``docker build`` context.

    Created once by the package task and never modified afterwards.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    sha256: str
    size_bytes: int
    member_count: int


class ImageId(BaseModel):
    """Opaque image identifier written by ``docker build --iidfile``."""

    model_config = ConfigDict(frozen=True)

    value: str

    @property
    def short(self) -> str:
        """Seven-character reference passed to test scripts.

        Derived and non-authoritative; every other step uses ``value``.
        """
        if len(self.value) < _SHORT_ID_END:
            raise ImageIdMissingError(
                f"Image id {self.value!r} is too short to derive a short reference"
            )
        return self.value[_SHORT_ID_START:_SHORT_ID_END]

    @classmethod
    def read(cls, path: Path) -> ImageId:
        """Load the id from *path*, failing loudly if it is missing or empty."""
        path = Path(path)
        if not path.is_file():
            raise ImageIdMissingError(
                f"Image id file not found: {path}. Run the build task first."
            )
        value = path.read_text(encoding="utf-8").strip()
        if not value:
            raise ImageIdMissingError(f"Image id file is empty: {path}")
        return cls(value=value)

    def __str__(self) -> str:
        return self.value
