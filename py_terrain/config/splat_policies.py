"""
Named splat policy presets.

Thresholds and layer roles are policy, not algorithm; callers pick a preset
by name or build their own ``SplatPolicy``.
"""

from typing import Dict, List

from ..core.splat import SplatPolicy

POLICIES: Dict[str, SplatPolicy] = {
    # Five layers: constant base, grass, rock (dirt and cliffs), valley floor, snow
    "standard": SplatPolicy(),
    # Four layers without a dedicated snow texture; steep peaks go to rock
    "no_snow": SplatPolicy(
        layer_names=("base", "grass", "rock", "valley"),
        snow_layer=2,
    ),
    # Separate cliff texture, wider valley band and lower snow line
    "alpine": SplatPolicy(
        layer_names=("base", "grass", "dirt", "valley", "snow", "cliff"),
        low_threshold=0.15,
        high_threshold=0.65,
        base_weight=0.05,
        cliff_layer=5,
    ),
}


def get_policy(name: str) -> SplatPolicy:
    """Look up a preset by name."""
    if name not in POLICIES:
        raise ValueError(
            f"Unknown splat policy '{name}'. Available: {', '.join(list_policies())}"
        )
    return POLICIES[name]


def list_policies() -> List[str]:
    return sorted(POLICIES)
