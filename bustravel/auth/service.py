import logging
import uuid
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional

from bustravel.models import User, UserRole
from bustravel.auth.utils import get_password_hash, verify_password
from bustravel.exceptions import EmailAlreadyRegisteredError

logger = logging.getLogger(__name__)

class UserService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: uuid.UUID) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def list_users(db: Session, role: Optional[UserRole] = None) -> List[User]:
        query = db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at, User.email).all()

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        name: str,
        password: str,
        role: UserRole = UserRole.TRAVELLER
    ) -> User:
        """Create a new user; registration always yields a traveller"""
        if UserService.get_user_by_email(db, email):
            raise EmailAlreadyRegisteredError()

        db_user = User(
            email=email,
            name=name,
            password=get_password_hash(password),
            role=role
        )

        try:
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
        except IntegrityError:
            db.rollback()
            raise EmailAlreadyRegisteredError()

        logger.info("Created %s account %s", role.value, email)
        return db_user

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        user = UserService.get_user_by_email(db, email)
        if not user:
            return None
        if not verify_password(password, user.password):
            return None
        return user
