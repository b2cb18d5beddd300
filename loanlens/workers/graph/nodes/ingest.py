from __future__ import annotations
from typing import Any, Dict, MutableMapping
from ..core.errors import ExtractionError
from ..core.state import record_phase
from ..io.ingest import ingest_archive

def ingest_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    settings = state["settings"]
    archive = state.get("archive")
    if archive is None:
        raise ExtractionError("No archive was downloaded for extraction")

    dataset = ingest_archive(
        archive,
        member=settings.dataset_member,
        source_name=f"{settings.dataset}.zip",
    )

    payload = {
        "rows": dataset.row_count,
        "columns": list(dataset.columns),
        "bytesRead": dataset.bytes_read,
        "skippedRows": dataset.skipped_rows,
        "source": dataset.source_name,
    }

    # the archive is not needed past this point
    return record_phase(state, "ingest", payload, dataset=dataset, archive=None)
