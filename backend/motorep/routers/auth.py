from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db
from ..core.security import create_access_token, hash_password, verify_password
from ..core.utils import local_now_naive
from ..models.user import Role, User
from ..schemas.user import LoginData, TokenResponse, UserCreate, UserResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email).first()

    if not user:
        raise HTTPException(status_code=400, detail="Usuario no encontrado")

    if not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Contraseña incorrecta")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="Usuario inactivo")

    user.ultimo_acceso = local_now_naive()
    db.commit()
    return user


# ===========================
#       REGISTRO
# ===========================
@router.post("/register", response_model=UserResponse)
def register(user: UserCreate, db: Session = Depends(get_db)):

    existing = db.query(User).filter(User.email == user.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email ya está registrado")

    new_user = User(
        email=user.email,
        full_name=user.full_name,
        hashed_password=hash_password(user.password),
    )
    vendedor = db.query(Role).filter(Role.name == "vendedor").first()
    if vendedor:
        new_user.roles.append(vendedor)
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    return new_user


# ===========================
#           LOGIN
# ===========================
@router.post("/login", response_model=TokenResponse)
def login(data: LoginData, db: Session = Depends(get_db)):
    user = _authenticate(db, data.email, data.password)
    token = create_access_token({"sub": user.email})
    return {"access_token": token, "token_type": "bearer", "user": user}


@router.post("/token")
def login_form(form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = _authenticate(db, form.username, form.password)
    return {"access_token": create_access_token({"sub": user.email}), "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user
