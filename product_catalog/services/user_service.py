from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import generate_password_hash, check_password_hash
from typing import Optional, List, Tuple, Iterable
import logging
import uuid

from product_catalog.config import get_settings
from product_catalog.models.user import User, Role, RoleName

logger = logging.getLogger(__name__)


class RegistrationError(Exception):
    """Exception raised when an account cannot be created or its roles attached."""
    pass


class UserService:
    """
    Credential store: accounts, password hashes and role memberships.

    Registration commits the account before attaching roles. A role that
    cannot be attached leaves the account in place without it.
    """

    def __init__(self, db: Session):
        self.db = db
        self.password_min_length = get_settings().PASSWORD_MIN_LENGTH

    def register(self, username: str, password: str, roles: Optional[Iterable[str]] = None) -> None:
        """
        Create an account with a hashed password and attach the given roles.

        Raises:
            RegistrationError: On a duplicate username, a weak password,
                or a role that could not be attached
        """
        problems = self.password_problems(password)
        if problems:
            raise RegistrationError("; ".join(problems))

        if self.find_by_email(username) is not None:
            raise RegistrationError(f"Username '{username}' is already taken.")

        user = User(
            id=str(uuid.uuid4()),
            username=username,
            email=username,
            password_hash=generate_password_hash(password),
        )
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise RegistrationError(f"Username '{username}' is already taken.") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating user {username}: {e}")
            raise RegistrationError("Could not create user.") from e

        logger.info(f"User {username} registered")

        if roles:
            self._attach_roles(user, roles)

    def verify(self, username: str, password: str) -> Optional[Tuple[User, List[RoleName]]]:
        """
        Check a username/password pair.

        Returns:
            The user and its current roles, or None when the user is
            unknown or the password doesn't match
        """
        user = self.find_by_email(username)

        if user is None or not check_password_hash(user.password_hash, password):
            return None

        return user, self.roles_of(user)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    @staticmethod
    def roles_of(user: User) -> List[RoleName]:
        return sorted(RoleName(role.name) for role in user.roles)

    def password_problems(self, password: str) -> List[str]:
        """List the password policy rules a candidate password breaks."""
        problems = []
        if len(password) < self.password_min_length:
            problems.append(f"Password must be at least {self.password_min_length} characters.")
        if not any(c.isdigit() for c in password):
            problems.append("Password must contain a digit.")
        if not any(c.islower() for c in password):
            problems.append("Password must contain a lowercase letter.")
        if not any(c.isupper() for c in password):
            problems.append("Password must contain an uppercase letter.")
        if all(c.isalnum() for c in password):
            problems.append("Password must contain a non-alphanumeric character.")
        return problems

    def _attach_roles(self, user: User, roles: Iterable[str]) -> None:
        names = sorted({role.value if isinstance(role, RoleName) else role for role in roles})
        try:
            rows = self.db.query(Role).filter(Role.name.in_(names)).all()
            missing = set(names) - {row.name for row in rows}
            if missing:
                raise RegistrationError(f"Unknown roles: {', '.join(sorted(missing))}")

            user.roles.extend(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error attaching roles to user {user.username}: {e}")
            raise RegistrationError("Could not attach roles.") from e

        logger.info(f"User {user.username} added to roles {names}")
