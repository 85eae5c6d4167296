"""HTTP routers for documents, edit panels and edit jobs."""
