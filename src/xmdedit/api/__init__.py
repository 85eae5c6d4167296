"""HTTP API for xmdedit: documents, render toggles and component edit panels."""
