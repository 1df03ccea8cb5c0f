"""
proofpack package

This package implements the evidence packager as a CLI-first utility.

Key responsibilities are split across modules:
- `digest.py`: discover evidence files and compute their SHA-256 digests
- `renderer.py`: substitute digests (and metadata) into document templates
- `config.py`: parse the markdown/YAML proof config into a structured model
- `packager.py`: stage rendered documents + evidence, publish via collaborators
- `git.py`: local git operations (subprocess)
- `github_client.py`: isolated GitHub REST API interactions (repo / pull request)
- `cli.py`: CLI entrypoint and orchestration (config -> render -> stage -> publish)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
