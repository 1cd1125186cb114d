"""Chapter data model."""

from pydantic import BaseModel, ConfigDict


class Chapter(BaseModel):
    """A spine entry of an EPUB archive that holds chapter markup."""

    model_config = ConfigDict(frozen=True)

    path: str  # Full path of the entry inside the archive
    href: str  # Manifest href, relative to the OPF directory
    order: int  # Position in the spine (0-based)
