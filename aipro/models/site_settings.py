from pydantic import BaseModel, ConfigDict, Field


class SiteSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    site_name: str = Field(default="AI Pro Platform", min_length=1)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    maintenance_mode: bool = False
