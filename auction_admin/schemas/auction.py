from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class AuctionCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_name: str | None = Field(None, alias="productName")
    product_description: str | None = Field(None, alias="productDescription")
    product_heromsg: str | None = None
    remarks: str | None = None
    auction_sub_type: str | None = Field(None, alias="auctionSubType")
    is_multi_lot: bool = Field(False, alias="isMultiLot")
    category_id: str | None = Field(None, alias="categoryId")
    subcategoryid: str | None = None
    attributes: dict | list | None = None
    sku: str | None = None
    brand: str | None = None
    model: str | None = None

    start_price: float | None = Field(None, alias="startPrice")
    minimum_increment: float | None = Field(None, alias="minimumIncrement")
    reserveprice: float | None = None

    launch_type: str = Field("immediate", alias="launchType")
    scheduled_start: datetime | None = Field(None, alias="scheduledStart")
    days: int | None = None
    hours: int | None = None
    minutes: int | None = None

    product_images: list | None = Field(None, alias="productImages")
    product_documents: list | None = Field(None, alias="productDocuments")
    requireddocuments: list | dict | str | None = None
    is_featured: bool = False


class SectionsUpdate(BaseModel):
    auction_id: str | None = None
    sections: list | dict | None = None
