from fastapi.middleware.cors import CORSMiddleware
from starlette_context import middleware, plugins

from app.config import ORIGINS


def register_middlewares(app):
    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(
        middleware.ContextMiddleware,
        plugins=(
            plugins.ForwardedForPlugin(),
        ),
    )
