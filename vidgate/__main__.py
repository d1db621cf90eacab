"""Run the gateway with uvicorn: ``python -m vidgate``."""

import uvicorn

from vidgate.config.settings import GatewaySettings

if __name__ == "__main__":
    settings = GatewaySettings()
    uvicorn.run("vidgate.main:app", host="0.0.0.0", port=settings.port, proxy_headers=True)
