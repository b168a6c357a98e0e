from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from typing import List
from pathlib import Path
import os

from gitdrill.api.service import DrillService
from gitdrill.api.schemas import ExtractorKindResponse, MetaResponse, RunRequest, RunResponse
from gitdrill.errors import (
    FatalAcquisitionError,
    FatalExportError,
    FatalWalkError,
    UnsupportedConfigurationError,
)

import logging

# Configure Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="gitdrill API")

# In production, set ALLOWED_ORIGINS to a comma-separated list of domains
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "*")
allowed_origins = [origin.strip() for origin in allowed_origins_env.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Datasets of each run are written below GITDRILL_OUTPUT_DIR
service = DrillService(Path(os.getenv("GITDRILL_OUTPUT_DIR", ".")))

@app.get("/api/extractors", response_model=List[ExtractorKindResponse])
def get_extractors():
    """List the extractor kinds a run can select."""
    return service.list_extractors()

@app.get("/api/catalog", response_model=List[MetaResponse])
def get_catalog():
    """Describe the datasets produced by the default extractor set."""
    return service.get_catalog()

@app.post("/api/runs", response_model=RunResponse)
def create_run(req: RunRequest):
    """Clone a repository and extract its datasets."""
    try:
        return service.run(req)
    except (UnsupportedConfigurationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (FatalAcquisitionError, FatalWalkError) as e:
        logger.error(f"Run for {req.repository_url} failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except FatalExportError as e:
        logger.error(f"Export for {req.repository_url} failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

@app.get("/health")
def health_check():
    return {"status": "ok", "output_dir": str(service.output_dir)}
