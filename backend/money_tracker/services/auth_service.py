import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from money_tracker.core.errors import DuplicateEmail, InternalError, InvalidCredentials
from money_tracker.core.security import (
    Identity,
    TokenService,
    get_password_hash,
    verify_password,
)
from money_tracker.models.user import User

logger = logging.getLogger(__name__)


class AuthService:
    @staticmethod
    def create_user(db: Session, email: str, password: str) -> User:
        """Register a new user; the password is hashed before it is stored"""
        # Explicit check gives the common case a clean error; the unique
        # constraint below still catches two signups racing for one email
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.info(f"Signup rejected, email already registered: {email}")
            raise DuplicateEmail()

        db_user = User(email=email, hashed_password=get_password_hash(password))
        try:
            db.add(db_user)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(f"Signup rejected, email already registered: {email}")
            raise DuplicateEmail()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while creating user {email}: {e}")
            raise InternalError("Failed to create user")

        # Refresh to load auto-generated fields (id, timestamps)
        db.refresh(db_user)
        logger.info(f"User created: {db_user.id}")
        return db_user

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> Identity:
        """
        Check credentials and return the caller's identity.

        Unknown email and wrong password raise the same InvalidCredentials so
        the response never confirms which emails are registered.
        """
        user = db.query(User).filter(User.email == email).first()
        if not user or not verify_password(password, user.hashed_password):
            logger.info(f"Failed login attempt for {email}")
            raise InvalidCredentials()
        return Identity(user_id=user.id, email=user.email)

    @staticmethod
    def login(db: Session, token_service: TokenService, email: str, password: str) -> str:
        """Authenticate and issue an access token"""
        identity = AuthService.authenticate(db, email, password)
        token = token_service.issue(identity)
        logger.info(f"User {identity.user_id} logged in")
        return token


auth_service = AuthService()
