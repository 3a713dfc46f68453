#!/usr/bin/env python3
"""
Demonstration of the earring geometry pipeline.

This script walks through a design session:
1. Placing sites on a ring with a cluster inside
2. Placing a mounting hole
3. Rounding corners (fast path, no re-tessellation)
4. Spreading the inner sites
5. Exporting the SVG outline
"""

import math
import sys

from py_earring.core import DesignSession, InteractionMode


def main(out_path: str = "earring.svg"):
    session = DesignSession()

    print("=== Voronoi Earring Demo ===\n")

    # 1. Sites: an outer ring keeps the inner cells bounded
    print("1. Placing sites...")
    for i in range(10):
        angle = 2 * math.pi * i / 10
        session.add_site(50 + 40 * math.cos(angle), 50 + 40 * math.sin(angle))
    for x, y in [(45, 45), (55, 47), (50, 56), (42, 55), (58, 55)]:
        session.add_site(x, y)
    result = session.result
    print(f"   - {len(session.sites)} sites")
    print(f"   - {len(result.interior_cells)} interior cells, {len(result.shadow_polygons)} shadow cells")
    print(f"   - {len(result.boundary_polygons)} boundary loop(s)")

    # 2. Hole
    print("\n2. Placing the hole...")
    session.set_mode(InteractionMode.PLACE_HOLE)
    session.handle_click(50, 50)
    print(f"   - Hole included: {session.result.hole_included}")

    # 3. Rounding
    print("\n3. Rounding corners...")
    session.update_parameters(corner_radius=1.5)
    print(f"   - {len(session.result.display_commands)} rounded paths")

    # 4. Spreading
    print("\n4. Spreading sites...")
    moved = session.spread()
    print(f"   - Sites moved: {moved}")

    # 5. Export
    print("\n5. Exporting SVG...")
    svg = session.export_svg()
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(svg)
    print(f"   - Saved {out_path} ({len(svg)} bytes)")


if __name__ == "__main__":
    main(*sys.argv[1:])
