from __future__ import annotations
from typing import Any, Dict, MutableMapping
from ..core.config import load_credentials
from ..core.state import record_phase
from ..io.acquire import download_archive, dataset_download_url

def acquire_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    settings = state["settings"]
    credentials = load_credentials(settings)
    archive = download_archive(settings, credentials)

    payload = {
        "dataset": settings.dataset,
        "url": dataset_download_url(settings),
        "bytesDownloaded": len(archive),
    }
    return record_phase(state, "acquire", payload, archive=archive)
