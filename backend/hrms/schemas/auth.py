from pydantic import BaseModel, ConfigDict, Field


class AuthenticatedUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(default="")
    email: str | None = None
    roles: tuple[str, ...] = Field(..., min_length=1)

    @property
    def primary_role(self) -> str:
        return self.roles[0]


class AuthState(BaseModel):
    """Output of the authentication collaborator for one request or session."""

    model_config = ConfigDict(frozen=True)

    user: AuthenticatedUser | None = None
    is_authenticated: bool = False
    is_loading: bool = False

    @classmethod
    def anonymous(cls) -> "AuthState":
        return cls(user=None, is_authenticated=False, is_loading=False)

    @classmethod
    def pending(cls) -> "AuthState":
        return cls(user=None, is_authenticated=False, is_loading=True)

    @classmethod
    def signed_in(cls, user: AuthenticatedUser) -> "AuthState":
        return cls(user=user, is_authenticated=True, is_loading=False)
