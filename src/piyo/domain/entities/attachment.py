"""Attachment entities."""

from dataclasses import dataclass
from enum import Enum


class AttachmentKind(Enum):
    """添付ファイルの種類"""

    PHOTO = "photo"
    DOCUMENT = "document"


@dataclass(frozen=True)
class Attachment:
    """Message attachment.

    Attributes:
        file_id: Platform file ID used to resolve a download URL.
        kind: Attachment kind.
        mime_type: MIME type if known (documents only).
    """

    file_id: str
    kind: AttachmentKind
    mime_type: str | None = None

    def is_image(self) -> bool:
        """Check if the attachment can be described as an image."""
        if self.kind == AttachmentKind.PHOTO:
            return True
        return self.mime_type is not None and self.mime_type.startswith("image/")


@dataclass(frozen=True)
class ImageDescription:
    """Result of describing an image.

    Attributes:
        title: Short title.
        description: Longer description.
    """

    title: str
    description: str
