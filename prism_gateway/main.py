import logging
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from .config import PrismConfig, load_config
from .prism import PrismClient
from .pipeline import GenerationPipeline, UploadGateway, build_steps, upload_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

load_dotenv()


def create_app(
    config: Optional[PrismConfig] = None,
    client=None,
    sleep=None,
) -> FastAPI:
    """
    Build the gateway app. Tests pass their own config, a fake client
    and a non-waiting sleep; production uses the environment.
    """
    config = config or load_config()
    client = client or PrismClient(config)

    pipeline_kwargs = {"sleep": sleep} if sleep is not None else {}
    pipeline = GenerationPipeline(client, build_steps(config), **pipeline_kwargs)

    app = FastAPI(title="PRISM Gateway")
    app.state.config = config
    app.state.gateway = UploadGateway(config, pipeline)
    app.include_router(upload_router)

    @app.get("/health")
    def health_check():
        """Verify the gateway is running and the PRISM key is configured."""
        return {
            "status": "ok",
            "prism_api_key_set": bool(config.api_key),
            "prism_api_url": config.base_url,
            "pipeline_mode": config.pipeline_mode,
        }

    logger.info(f"Gateway ready: mode={config.pipeline_mode}, steps={[s.name.value for s in pipeline.steps]}")
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
