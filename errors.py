# errors.py

class DataError(Exception):
  """Read failure carrying a fixed message safe to show to the caller."""

  def __init__(self, message: str):
    super().__init__(message)
    self.message = message


class NotFoundError(DataError):
  pass


class DatabaseUnavailable(DataError):
  pass


class Redirect(Exception):
  """Aborts the current handler and sends the client to `url`."""

  def __init__(self, url: str):
    super().__init__(url)
    self.url = url


class AuthError(Exception):
  CREDENTIALS_SIGNIN = "CredentialsSignin"
  OAUTH_SIGNIN = "OAuthSignin"
  ACCESS_DENIED = "AccessDenied"

  def __init__(self, type: str, detail: str = ""):
    super().__init__(detail or type)
    self.type = type
