from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select
from app.database import get_session
from app.dependencies.admin import is_admin
from app.models.user import User
from app.schemas.user_schemas import UserRegister, UserLogin, Token, UserResponse
from app.utils.hash import hash_password, verify_password
from app.utils.token import create_access_token


router = APIRouter()


def _authenticate(session: Session, email: str, password: str) -> User:
    user = session.exec(select(User).where(User.email == email.lower())).first()

    if not user or not verify_password(password, user.password):
        raise HTTPException(401, "Invalid email or password")
    if not user.can_login:
        raise HTTPException(403, "User account is disabled")
    return user


# -------- AUTH ROUTES --------

@router.post("/register", response_model=UserResponse)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    email = payload.email.lower()
    existing_user = session.exec(select(User).where(User.email == email)).first()
    if existing_user:
        raise HTTPException(400, "Email already registered")

    user = User(
        full_name=payload.full_name,
        email=email,
        password=hash_password(payload.password)
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    return UserResponse(
        message="Registration successful.",
        user_id=user.id,
        email=user.email,
        role=user.role,
        is_admin=is_admin(user),
    )


@router.post("/login", response_model=Token)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = _authenticate(session, payload.email, payload.password)
    token = create_access_token({"user_id": user.id})
    return Token(access_token=token, token_type="bearer")


@router.post("/token", response_model=Token, include_in_schema=False)
def login_form(form: OAuth2PasswordRequestForm = Depends(), session: Session = Depends(get_session)):
    user = _authenticate(session, form.username, form.password)
    token = create_access_token({"user_id": user.id})
    return Token(access_token=token, token_type="bearer")
