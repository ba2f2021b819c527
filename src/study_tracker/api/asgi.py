"""ASGI entrypoint for the study tracker API."""

from study_tracker.api.app import create_app
from study_tracker.containers import build_container

app = create_app(build_container())
