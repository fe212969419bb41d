"""ViewModel package for configuration state.

Modules here hold typed settings and validation only; adapters are built
from them in ``viewkit.app.controller``.
"""
