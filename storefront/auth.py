from fastapi import Header, HTTPException, Request
from jose import JWTError, jwt


def verify_token(request: Request, authorization: str = Header(...)):
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("unsupported scheme")
        return jwt.decode(token, request.app.state.settings.jwt_secret, algorithms=["HS256"])
    except (ValueError, JWTError):
        raise HTTPException(status_code=401, detail="Invalid or missing token")
