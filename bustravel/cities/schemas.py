from pydantic import BaseModel

class CityInfo(BaseModel):
    id: int
    name: str
    center_lat: float
    center_lng: float
    pickup_radius_km: float

    class Config:
        from_attributes = True
