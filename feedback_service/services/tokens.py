from typing import Optional
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from flask import current_app

OPERATOR = "operator"

def _serializer() -> URLSafeTimedSerializer:
    secret = current_app.config["SECRET_KEY"]
    salt = current_app.config.get("OPERATOR_TOKEN_SALT", "operator-token-v1")
    return URLSafeTimedSerializer(secret_key=secret, salt=salt)

def generate(kind: str, identity: str) -> str:
    """
    kind: token purpose; only 'operator' is issued today.
    identity: operator user id as a string.
    """
    return _serializer().dumps({"k": kind, "i": identity})

def verify(kind: str, token: str, max_age_seconds: int) -> Optional[str]:
    try:
        data = _serializer().loads(token, max_age=max_age_seconds)
    except (BadSignature, SignatureExpired):
        return None
    if not isinstance(data, dict) or data.get("k") != kind:
        return None
    return data.get("i")

def generate_operator_token(user) -> str:
    return generate(OPERATOR, str(user.id))

def verify_operator_token(token: str, max_age_seconds: Optional[int] = None) -> Optional[str]:
    if max_age_seconds is None:
        max_age_seconds = int(current_app.config.get("OPERATOR_TOKEN_MAX_AGE", 12 * 60 * 60))
    return verify(OPERATOR, token, max_age_seconds)
