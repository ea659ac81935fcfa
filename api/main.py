from __future__ import annotations

from scorebook.main import create_app

app = create_app()
