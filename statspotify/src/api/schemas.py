from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


# PUBLIC_INTERFACE
class ExchangeRequest(BaseModel):
    """Body posted by the client to /api/exchange. Presence is checked by the route, not the model."""
    code: Optional[str] = Field(None, description="Single-use authorization code from the redirect")
    code_verifier: Optional[str] = Field(None, description="PKCE verifier whose challenge was sent to /authorize")
    redirect_uri: Optional[str] = Field(None, description="Redirect URI used in the authorization request")

    # PUBLIC_INTERFACE
    @classmethod
    def from_payload(cls, payload: Any) -> "ExchangeRequest":
        """Build from an arbitrary decoded JSON payload.

        A non-object payload counts as an empty body. Each field that is not a string
        is dropped on its own, so one bad field does not discard the others.
        """
        if not isinstance(payload, dict):
            return cls()
        fields = {name: payload[name] for name in cls.model_fields if isinstance(payload.get(name), str)}
        return cls.model_validate(fields)


# PUBLIC_INTERFACE
class SafeTokenResponse(BaseModel):
    """Token fields that may be returned to the client. The refresh token is never one of them."""
    access_token: Optional[str] = Field(None, description="Short-lived access token")
    token_type: Optional[str] = Field(None, description="Token type, normally 'Bearer'")
    expires_in: Optional[int] = Field(None, description="Access token lifetime in seconds")
    scope: Optional[str] = Field(None, description="Space-separated granted scopes")

    # PUBLIC_INTERFACE
    @classmethod
    def from_token_json(cls, token_json: Dict[str, Any]) -> "SafeTokenResponse":
        """Pick the safe subset from an authorization server token response."""
        return cls(
            access_token=token_json.get("access_token"),
            token_type=token_json.get("token_type"),
            expires_in=token_json.get("expires_in"),
            scope=token_json.get("scope"),
        )

    def to_body(self) -> Dict[str, Any]:
        # Fields the authorization server omitted stay omitted
        return self.model_dump(exclude_none=True)


# PUBLIC_INTERFACE
class ErrorBody(BaseModel):
    """Error body returned by the token routes."""
    error: str = Field(..., description="Short machine-readable error tag or message")
    message: Optional[str] = Field(None, description="Transport failure description, when applicable")


# PUBLIC_INTERFACE
class LogoutResponse(BaseModel):
    ok: bool = Field(True, description="Always true; the refresh cookie has been cleared")


# PUBLIC_INTERFACE
class HealthResponse(BaseModel):
    """Presence-only configuration status. Values are never included."""
    ok: bool = Field(True, description="Service is up")
    hasClient: bool = Field(..., description="SPOTIFY_CLIENT_ID is set")
    hasSecret: bool = Field(..., description="SPOTIFY_CLIENT_SECRET is set")
