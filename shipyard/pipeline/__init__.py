"""Release pipeline: target matrix, build executors, artifact publishing, manifest gate.

Import modules directly (``from shipyard.pipeline.gate import ManifestGate``).
"""
