LOGIN_ERROR_MESSAGE = "Password salah. Coba hubungi Supervisor."


class AuthError(Exception):
    def __init__(self, message=LOGIN_ERROR_MESSAGE):
        super().__init__(message)
        self.message = message


class CredentialChecker:
    """Decides whether a submitted secret grants admin access."""

    def check(self, secret):
        raise NotImplementedError


class SharedSecretChecker(CredentialChecker):
    def __init__(self, secrets=("itadmin", "admin")):
        self.secrets = tuple(s for s in secrets if s)

    @classmethod
    def from_env_value(cls, value):
        secrets = tuple(part.strip() for part in (value or "").split(",") if part.strip())
        return cls(secrets) if secrets else cls()

    def check(self, secret):
        return secret in self.secrets


def authenticate(checker, secret):
    if not checker.check(secret):
        raise AuthError()
    return True
