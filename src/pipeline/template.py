# src/pipeline/template.py
"""The fixed reconstruction pipeline: feature detection, meshing, sfm.

The step set never changes after a job is created; only attribute values
vary, either through edits or when a descriptor is loaded.
"""

from __future__ import annotations

from reconjob.core.models import Attribute, AttributeKind
from reconjob.pipeline.step import Step

FEATURE_DETECTION_STEP = "feature_detection"
MESHING_STEP = "meshing"
SFM_STEP = "sfm"
INITIAL_PAIR_KEY = "initial_pair"

DESCRIBER_PRESETS = ["Normal", "High", "Ultra"]


def build_default_steps() -> list[Step]:
    """Create the template steps with their compiled-in defaults, in order."""
    feature_detection = Step(FEATURE_DETECTION_STEP, [
        Attribute(
            key="describerPreset",
            name="quality",
            kind=AttributeKind.COMBO,
            value="Normal",
            options=list(DESCRIBER_PRESETS),
        ),
    ])
    meshing = Step(MESHING_STEP, [
        Attribute(
            key="scale",
            name="meshing scale",
            kind=AttributeKind.NUMERIC,
            value=2,
            minimum=1,
            maximum=10,
            step=1,
        ),
    ])
    sfm = Step(SFM_STEP, [
        Attribute(
            key=INITIAL_PAIR_KEY,
            name="initial pair",
            kind=AttributeKind.PAIR_SELECTOR,
            value=["", ""],
        ),
    ])
    return [feature_detection, meshing, sfm]
