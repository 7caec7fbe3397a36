from functools import lru_cache

from fastapi import Header, HTTPException, status

from src.domain.access import USER_ROLE, Requester
from src.infrastructure.config import get_settings
from src.infrastructure.db.session import SessionLocal
from src.infrastructure.gateways.payment_gateway import PaymentGateway, build_payment_gateway


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_requester(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Requester:
    # Identity is established by the authentication layer in front of us.
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return Requester(user_id=x_user_id, role=(x_user_role or USER_ROLE).lower())


@lru_cache()
def _payment_gateway() -> PaymentGateway:
    return build_payment_gateway(get_settings())


def get_payment_gateway() -> PaymentGateway:
    try:
        return _payment_gateway()
    except (RuntimeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
