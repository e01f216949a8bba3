"""External delivery collaborators: object storage and email."""
