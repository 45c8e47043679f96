from pydantic import BaseModel


class CategoryPayload(BaseModel):
    """Body of category upserts and partial updates. Unset fields are left alone."""
    handle: str | None = None
    title: str | None = None
    short_desc: str | None = None
    long_desc: str | None = None
    image_url: str | None = None
    taxonomy: list | None = None
    metadata: dict | None = None
    is_active: bool | None = None
