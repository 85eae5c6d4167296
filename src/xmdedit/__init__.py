"""xmdedit: embedded-block editing core for XMD documents.

The package recovers figures, grids and tables from plain XMD text, keeps
render toggles anchored across edits, and gates model-proposed component
edits behind a capability contract.
"""

from __future__ import annotations

__all__ = ["__version__"]
__version__ = "0.3.0"
