"""
认证路由
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from frontdesk.database import get_db
from frontdesk.models.entities import Staff
from frontdesk.models.schemas import LoginRequest, LoginResponse, StaffResponse
from frontdesk.security.auth import authenticate, create_access_token, get_current_user

router = APIRouter(prefix="/auth", tags=["认证"])


def _staff_response(staff: Staff) -> StaffResponse:
    return StaffResponse(
        id=staff.id,
        username=staff.username,
        full_name=staff.full_name,
        is_active=staff.is_active,
        roles=staff.role_codes
    )


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """用户登录"""
    try:
        staff = authenticate(db, data.username, data.password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    if not staff:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="用户名或密码错误"
        )
    return LoginResponse(
        access_token=create_access_token(staff.id),
        staff=_staff_response(staff)
    )


@router.get("/me", response_model=StaffResponse)
def get_current_user_info(current_user: Staff = Depends(get_current_user)):
    """获取当前用户信息"""
    return _staff_response(current_user)
