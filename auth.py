# auth.py
"""
Sign-in provider: bcrypt credentials against the users table, or a Google ID token.

bcrypt only reads the first 72 bytes of a password, so longer secrets are truncated
explicitly instead of raising.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import bcrypt
import httpx
from pydantic import ValidationError
from sqlmodel import Session

from config import get_settings
from data import get_user
from errors import AuthError, Redirect
from models import User
from validation import LoginForm

logger = logging.getLogger(__name__)

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

AFTER_SIGN_IN = "/dashboard"


def _to_bcrypt_secret(password: str) -> bytes:
  pw = password.encode("utf-8")
  return pw[:72]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
  salt = bcrypt.gensalt(rounds=rounds or get_settings().bcrypt_rounds)
  return bcrypt.hashpw(_to_bcrypt_secret(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
  try:
    return bcrypt.checkpw(_to_bcrypt_secret(password), password_hash.encode("utf-8"))
  except ValueError:
    # stored value is not a bcrypt hash
    return False


def sign_in_credentials(session: Session, data: Mapping[str, Any]) -> User:
  try:
    creds = LoginForm.model_validate(dict(data))
  except ValidationError:
    raise AuthError(AuthError.CREDENTIALS_SIGNIN, "malformed credentials")

  user = get_user(session, creds.email)
  if user is None or not verify_password(creds.password, user.password):
    raise AuthError(AuthError.CREDENTIALS_SIGNIN, "invalid credentials")
  return user


async def sign_in_google(id_token: str) -> Dict[str, Any]:
  """Verify a Google ID token and return its claims."""
  if not id_token:
    raise AuthError(AuthError.OAUTH_SIGNIN, "missing id token")

  try:
    async with httpx.AsyncClient(timeout=10) as client:
      r = await client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})
  except httpx.HTTPError as e:
    raise AuthError(AuthError.OAUTH_SIGNIN, f"tokeninfo request failed: {e}")

  if r.status_code >= 400:
    raise AuthError(AuthError.OAUTH_SIGNIN, f"tokeninfo rejected token: {r.status_code}")

  try:
    claims = r.json()
  except ValueError as e:
    raise AuthError(AuthError.OAUTH_SIGNIN, f"tokeninfo reply is not JSON: {e}")
  if not isinstance(claims, dict):
    raise AuthError(AuthError.OAUTH_SIGNIN, "tokeninfo reply is not an object")

  client_id = get_settings().google_client_id
  if client_id and claims.get("aud") != client_id:
    raise AuthError(AuthError.ACCESS_DENIED, "token issued for another client")
  if claims.get("iss") not in GOOGLE_ISSUERS:
    raise AuthError(AuthError.ACCESS_DENIED, "unexpected issuer")
  if str(claims.get("email_verified", "")).lower() != "true":
    raise AuthError(AuthError.ACCESS_DENIED, "email not verified")
  return claims


def _auth_message(error: AuthError) -> str:
  logger.info("sign-in failed: %s (%s)", error.type, error)
  if error.type == AuthError.CREDENTIALS_SIGNIN:
    return "Invalid credentials."
  return "Something went wrong."


def authenticate(session: Session, data: Mapping[str, Any]) -> str:
  """Returns an error message; success leaves through Redirect."""
  try:
    user = sign_in_credentials(session, data)
  except AuthError as e:
    return _auth_message(e)
  logger.info("signed in %s", user.email)
  raise Redirect(AFTER_SIGN_IN)


async def authenticate_google(id_token: str) -> str:
  try:
    claims = await sign_in_google(id_token)
  except AuthError as e:
    return _auth_message(e)
  logger.info("signed in %s via google", claims.get("email"))
  raise Redirect(AFTER_SIGN_IN)
