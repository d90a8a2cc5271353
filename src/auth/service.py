from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.auth.schemas import UserCreate, UserUpdate
from src.auth.utils import get_password_hash, verify_password
from src.logger import logger
from src.models import Reservation, User


class UserService:
    """Accounts: passengers and operators share one table, told apart by ``is_admin``"""

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.get(User, user_id)

    @staticmethod
    def list_users(db: Session) -> List[User]:
        return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    @staticmethod
    def create_user(db: Session, user: UserCreate, is_admin: bool = False) -> User:
        """Register an account; emails are stored lower-cased"""
        db_user = User(
            name=user.name.strip(),
            email=user.email.lower(),
            password=get_password_hash(user.password),
            is_admin=is_admin
        )
        db.add(db_user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValueError("Email already registered")

        db.refresh(db_user)
        logger.info(f"User {db_user.id} registered ({db_user.email}{', admin' if is_admin else ''})")
        return db_user

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        user = UserService.get_user_by_email(db, email)
        if user is None or not verify_password(password, user.password):
            logger.info(f"Failed login for {email}")
            return None
        return user

    @staticmethod
    def update_user(db: Session, user_id: int, user_update: UserUpdate) -> Optional[User]:
        """Apply a profile edit; the admin flag is never editable here"""
        db_user = UserService.get_user_by_id(db, user_id)
        if not db_user:
            return None

        changes = user_update.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            db_user.name = changes["name"].strip()
        if "email" in changes:
            db_user.email = changes["email"].lower()
        if "password" in changes:
            db_user.password = get_password_hash(changes["password"])

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValueError("Email already exists")

        db.refresh(db_user)
        return db_user

    @staticmethod
    def promote(db: Session, user_id: int) -> Optional[User]:
        db_user = UserService.get_user_by_id(db, user_id)
        if not db_user:
            return None
        if not db_user.is_admin:
            db_user.is_admin = True
            db.commit()
            db.refresh(db_user)
            logger.info(f"User {db_user.id} promoted to admin")
        return db_user

    @staticmethod
    def delete_user(db: Session, user_id: int) -> bool:
        """Remove an account that holds no reservation history"""
        db_user = UserService.get_user_by_id(db, user_id)
        if not db_user:
            return False

        has_reservations = db.query(Reservation.id).filter(Reservation.user_id == user_id).first()
        if has_reservations:
            raise ValueError("User still has reservations")

        db.delete(db_user)
        db.commit()
        logger.info(f"User {user_id} deleted")
        return True
