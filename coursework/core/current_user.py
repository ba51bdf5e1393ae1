from dataclasses import dataclass

from fastapi import Header, HTTPException, status


@dataclass(frozen=True)
class Actor:
    id: int
    role: str


# Identity is established upstream (gateway / auth service) and forwarded in headers.
def get_current_actor(
    x_user_id: int | None = Header(default=None),
    x_user_role: str = Header(default="student"),
) -> Actor:
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return Actor(id=x_user_id, role=x_user_role.lower())
