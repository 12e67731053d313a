"""Run the service: ``python -m hanibot_chat``."""

import uvicorn

from .api.app import app


def main() -> None:
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)


if __name__ == "__main__":
    main()
