#!/usr/bin/env python3
"""
Demo script showing heightmap and splat map generation.
"""

import numpy as np
import matplotlib.pyplot as plt
from py_terrain.config import configure_logging, list_policies
from py_terrain.core import FlattenMode, TerrainConfig, generate_terrain


def main():
    """Generate terrain with each splat policy and plot the results."""
    configure_logging(fmt="plain")

    print("Py-Terrain Generation Demo")
    print("=" * 40)

    policies = list_policies()
    plt.figure(figsize=(6 * len(policies), 10))

    for i, policy_name in enumerate(policies):
        config = TerrainConfig(
            resolution=128,
            flatten_mode=FlattenMode.EDGE_FALLOFF,
            splat_policy=policy_name,
            seed=f"{policy_name}_demo",
        )
        result = generate_terrain(config)

        dominant = result.splat.argmax(axis=-1)
        shares = np.bincount(dominant.ravel(), minlength=len(result.layer_names))
        shares = shares / dominant.size * 100

        print(f"\n{policy_name}:")
        print(f"  Raw range: {result.raw_range[0]:.3f} - {result.raw_range[1]:.3f}")
        print(f"  Mean height: {result.heights.mean():.3f}")
        for name, share in zip(result.layer_names, shares):
            print(f"  {name}: {share:.1f}% dominant")

        plt.subplot(2, len(policies), i + 1)
        plt.imshow(result.heights.T, cmap="terrain", vmin=0, vmax=1, origin="lower")
        plt.colorbar(label="Height")
        plt.title(f"Heights ({policy_name})")

        plt.subplot(2, len(policies), len(policies) + i + 1)
        plt.imshow(dominant.T, cmap="tab10", origin="lower")
        plt.title("Dominant layer: " + ", ".join(result.layer_names))

    plt.tight_layout()
    plt.savefig("terrain_examples.png", dpi=120)
    print("\nSaved visualization to terrain_examples.png")


if __name__ == "__main__":
    main()
