from sqlalchemy.orm import Session
from typing import List, Optional
from bustravel.models import City
from bustravel.cities.geofence import GeoPoint, is_within_radius

class CityService:
    @staticmethod
    def get_city_by_id(db: Session, city_id: int) -> Optional[City]:
        """Get city by ID"""
        return db.query(City).filter(City.id == city_id).first()

    @staticmethod
    def get_cities(db: Session) -> List[City]:
        """Get all cities ordered by name"""
        return db.query(City).order_by(City.name).all()

    @staticmethod
    def center_of(city: City) -> GeoPoint:
        return GeoPoint(city.center_lat, city.center_lng)

    @staticmethod
    def accepts_pickup(city: City, point: GeoPoint) -> bool:
        """Whether a pickup point lies within the city's pickup radius"""
        return is_within_radius(point, CityService.center_of(city), city.pickup_radius_km)
