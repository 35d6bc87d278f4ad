from fastapi import Request

from herbal_backend.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ai_client(request: Request):
    """The AI client built at startup; tests install a fake on app.state."""
    return request.app.state.ai_client
