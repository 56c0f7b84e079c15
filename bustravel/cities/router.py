from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from bustravel.database import get_db
from bustravel.cities.schemas import CityInfo
from bustravel.cities.service import CityService

router = APIRouter()

@router.get("/", response_model=List[CityInfo])
def list_cities(db: Session = Depends(get_db)):
    """List all cities with their pickup areas"""
    return CityService.get_cities(db)
