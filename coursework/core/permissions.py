from fastapi import Depends, HTTPException, status

from coursework.core.current_user import Actor, get_current_actor


def require_teacher(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.role not in ("teacher", "admin"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher role required",
        )
    return actor
