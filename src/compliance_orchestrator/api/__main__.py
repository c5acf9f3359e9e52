"""
compliance_orchestrator.api.__main__

Entrypoint for `python -m compliance_orchestrator.api` (also the
`compliance-orchestrator` console script).
"""

from __future__ import annotations

import uvicorn

from compliance_orchestrator.api.app import create_app
from compliance_orchestrator.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
