"""OAuth state model - one row per in-flight authorization-code flow.

Holds the CSRF state and the PKCE code verifier between the redirect to the
provider and the callback. Single-use, 10-minute lifetime.
"""

from datetime import datetime

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskboard_auth.models.base import Base, CreatedAtMixin


class OAuthState(Base, CreatedAtMixin):
    """Pending OAuth authorization.

    Attributes:
        id: Integer primary key.
        state: Random state parameter (CSRF token), unique.
        code_verifier: PKCE code verifier for the token exchange.
        provider: Provider name (e.g. "google").
        redirect_to: Optional in-app path to return to after sign-in.
        expires_at: Expiry timestamp.
        created_at: Creation timestamp (from CreatedAtMixin).
    """

    __tablename__ = "oauth_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    state: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    code_verifier: Mapped[str] = mapped_column(String(255), nullable=False)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    redirect_to: Mapped[str | None] = mapped_column(Text(), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
