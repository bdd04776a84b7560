from .auth_controller import AuthController

__all__ = ["AuthController"]
