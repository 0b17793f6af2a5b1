"""Gallery model for user-submitted photos.

Uploaded files live in object storage; this table only keeps the public
URL together with the attribution the uploader typed in. Rows are
append-only and listed newest first.
"""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class GalleryItem(SQLModel, table=True):
    """A photo shown on the community gallery page.

    Attributes:
        id: Autoincrementing identifier; higher ids are newer.
        image_url: Public URL of the stored upload.
        username: Display name of the uploader.
        message: Caption shown under the photo.
        created_at: When the upload was recorded.
    """
    __tablename__ = "gallery_items"

    id: int | None = Field(default=None, primary_key=True)
    image_url: str
    username: str = Field(default="Anonymous")
    message: str = Field(default="No message")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
