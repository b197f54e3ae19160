"""ASGI entrypoint for the nutrition analyzer API."""

from nutrition_analyzer.api.app import create_app
from nutrition_analyzer.containers import build_container

app = create_app(build_container())
