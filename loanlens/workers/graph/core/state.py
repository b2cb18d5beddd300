"""Phase bookkeeping shared by the pipeline nodes."""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from .constants import PHASE_ORDER

logger = logging.getLogger(__name__)


def record_phase(state: Mapping[str, Any], phase: str, payload: Dict[str, Any], **updates: Any) -> Dict[str, Any]:
    """Return the state update for a finished phase and notify ``on_phase``.

    ``payload`` lands in ``phase_outputs[phase]``; ``updates`` are merged
    into the pipeline state next to it.
    """
    outputs = dict(state.get("phase_outputs") or {})
    outputs[phase] = payload
    update: Dict[str, Any] = {"phase_outputs": outputs, **updates}

    index = PHASE_ORDER.index(phase)
    logger.debug("phase %s finished (%d/%d)", phase, index + 1, len(PHASE_ORDER), extra={"payload": payload})

    callback = state.get("callback")
    if callable(callback):
        callback(phase, payload, index, len(PHASE_ORDER))
    return update
