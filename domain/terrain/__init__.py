"""Terrain Bounded Context.

Responsible for the ground a vehicle drives on:
- Value Objects: Interference, MeshData, MeshPlacement, Mirror, Rotate
- Elements: Plane, Step, StepSlope, Slope, Function
- Aggregate: GridTerrain (build_grid_terrain)
- Services: raycast_terrain, snap_to_terrain, terrain_path
"""
