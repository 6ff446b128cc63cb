import logging

from sqlalchemy.orm import Session

from ..config import settings
from ..database import Base, get_engine, get_session_local
from ..models.user import Role, User
from .security import hash_password

logger = logging.getLogger(__name__)

ROLE_NAMES = ["administrador", "vendedor", "cajero"]


def _seed_roles(db: Session) -> None:
    existing = {role.name for role in db.query(Role).all()}
    for name in ROLE_NAMES:
        if name not in existing:
            db.add(Role(name=name))
    db.commit()


def _seed_admin(db: Session) -> None:
    admin = db.query(User).filter(User.email == settings.ADMIN_EMAIL).first()
    admin_role = db.query(Role).filter(Role.name == "administrador").first()
    if admin:
        if admin_role and admin_role not in admin.roles:
            admin.roles.append(admin_role)
            db.commit()
        return

    admin = User(
        full_name=settings.ADMIN_FULL_NAME,
        email=settings.ADMIN_EMAIL,
        hashed_password=hash_password(settings.ADMIN_PASSWORD),
        is_active=True,
    )
    if admin_role:
        admin.roles.append(admin_role)
    db.add(admin)
    db.commit()
    logger.info("Usuario admin creado (%s)", settings.ADMIN_EMAIL)


def seed(db: Session) -> None:
    _seed_roles(db)
    _seed_admin(db)


def init_db() -> None:
    Base.metadata.create_all(bind=get_engine())
    db = get_session_local()()
    try:
        seed(db)
    finally:
        db.close()
