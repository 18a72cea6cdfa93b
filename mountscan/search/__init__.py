"""
mountscan.search

The staged mounting-site search.

Submodules
----------
sites   BondingSphere, BondingCircle, CoordinationPoint and dispatch helpers
merge   Merge near-duplicate coordination points
stages  IntersectChecker → SphereStage → CircleStage → PointStage → FinalReport
"""
