"""Sign-up, sign-in, logout and current-user endpoints"""

from typing import Optional
from fastapi import APIRouter, Depends, Request, Response
from horizon.api.dependencies import get_current_user, get_request_id, get_session_secret, get_user_service
from horizon.api.errors import http_error, internal_error
from horizon.api.v1.schemas import AuthResponse, SignInRequest, SignUpRequest, UserResponse
from horizon.config import settings
from horizon.domain.exceptions import HorizonError
from horizon.domain.models import NewUser, User
from horizon.services.users import UserService

router = APIRouter()


def set_session_cookie(response: Response, secret: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        secret,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="strict",
    )


@router.post("/auth/sign-up", response_model=AuthResponse, status_code=201)
async def sign_up(
    body: SignUpRequest,
    request: Request,
    response: Response,
    user_service: UserService = Depends(get_user_service),
):
    """
    Create an account, a payments customer and a profile, then sign in.

    The session secret is only ever sent as an HttpOnly cookie.
    """
    request_id = get_request_id(request)
    new_user = NewUser(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        address1=body.address1,
        city=body.city,
        state=body.state.upper(),
        postal_code=body.postal_code,
        date_of_birth=body.date_of_birth.isoformat(),
        ssn=body.ssn,
    )

    try:
        user, secret = await user_service.sign_up(new_user, body.password)
    except HorizonError as e:
        raise http_error(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)

    set_session_cookie(response, secret)
    return AuthResponse(success=True, user=UserResponse.model_validate(user))


@router.post("/auth/sign-in", response_model=AuthResponse)
async def sign_in(
    body: SignInRequest,
    request: Request,
    response: Response,
    user_service: UserService = Depends(get_user_service),
):
    request_id = get_request_id(request)
    try:
        secret = await user_service.sign_in(body.email, body.password)
    except HorizonError as e:
        raise http_error(e, request_id)
    except Exception as e:
        raise internal_error(e, request_id)

    set_session_cookie(response, secret)
    return AuthResponse(success=True)


@router.post("/auth/logout", response_model=AuthResponse)
async def logout(
    response: Response,
    session_secret: Optional[str] = Depends(get_session_secret),
    user_service: UserService = Depends(get_user_service),
):
    await user_service.logout(session_secret)
    response.delete_cookie(
        settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="strict",
    )
    return AuthResponse(success=True)


@router.get("/auth/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)
