"""Receipt attachment models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReceiptUpload(BaseModel):
    """Represents an uploaded receipt file before it is encoded."""

    uploaded_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    original_filename: str = Field(default="receipt")
    file_size_bytes: int = Field(ge=0)
    mime_type: str

    @field_validator('mime_type')
    @classmethod
    def normalize_mime_type(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf"


class ReceiptFile(BaseModel):
    """A decoded receipt, ready to display or download."""
    model_config = ConfigDict(frozen=True)

    content: bytes
    mime_type: str
    filename: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def size_bytes(self) -> int:
        return len(self.content)
