"""JSON translation catalogues shared by the backend services."""
