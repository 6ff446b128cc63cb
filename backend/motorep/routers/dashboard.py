from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.deps import get_current_user, get_db
from ..core.utils import local_today
from ..models.user import User
from ..services.dashboard import resumen_dashboard

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def dashboard(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return resumen_dashboard(db, local_today())
