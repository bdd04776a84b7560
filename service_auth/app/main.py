"""
Auth service for the Taskflow backend.
"""

from typing import Optional

from fastapi import Depends
from pydantic import BaseModel

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.container import Container
from shared.database import Database, Opener
from shared.errors import TaskflowError
from . import tokens
from .container import register_auth_module
from .identity import IdentityProvider, Principal
from .security import require_principal


class TokenVerificationRequest(BaseModel):
    """Request model for token verification."""
    token: str


class AuthService(BaseService):
    """Auth service: wires the container and serves the /auth routes."""

    def __init__(self,
                 config: Optional[ServiceConfig] = None,
                 identity_provider: Optional[IdentityProvider] = None,
                 storage_opener: Optional[Opener] = None):
        super().__init__("auth", 8010, config)

        self.database = Database(
            self.config.postgres_dsn,
            opener=storage_opener,
            min_size=self.config.storage_min_pool_size,
            max_size=self.config.storage_max_pool_size,
            command_timeout=self.config.storage_command_timeout
        )
        self.container = register_auth_module(
            Container("auth"), self.config, self.database, identity_provider
        )

        self.app.state.container = self.container
        self.app.state.metrics = self.metrics
        self._setup_auth_routes()

    async def startup(self):
        """Connect storage before the server accepts traffic."""
        try:
            await self.database.connect()
        finally:
            self.metrics.record_storage_state(self.database.state.value)

    async def shutdown(self):
        await self.database.disconnect()
        self.metrics.record_storage_state(self.database.state.value)

    def _setup_auth_routes(self):
        """Set up auth-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "auth",
                "message": "Taskflow - Auth Service",
                "version": "1.0.0"
            }

        @self.app.get("/auth/health")
        async def auth_health():
            return self.container.resolve(tokens.AUTH_CONTROLLER).health()

        @self.app.get("/auth/me", response_model=Principal)
        async def get_current_user(principal: Principal = Depends(require_principal)):
            """Profile of the authenticated caller."""
            controller = self.container.resolve(tokens.AUTH_CONTROLLER)
            return await controller.get_current_user(principal)

        @self.app.post("/auth/verify")
        async def verify_token(request: TokenVerificationRequest):
            """Token verification endpoint."""
            controller = self.container.resolve(tokens.AUTH_CONTROLLER)
            try:
                principal = await controller.verify(request.token)
            except TaskflowError as e:
                self.metrics.record_verification(e.code)
                raise

            self.metrics.record_verification("success")
            return {
                "valid": True,
                "principal": principal.model_dump()
            }

    async def _check_dependencies(self):
        return {"storage": self.database.state.value}


def create_app(config: Optional[ServiceConfig] = None,
               identity_provider: Optional[IdentityProvider] = None,
               storage_opener: Optional[Opener] = None):
    """Create FastAPI application."""
    service = AuthService(config, identity_provider, storage_opener)
    return service.app


def main():
    # A storage failure during the lifespan startup aborts uvicorn with a
    # non-zero exit status.
    AuthService().run()


if __name__ == "__main__":
    main()
