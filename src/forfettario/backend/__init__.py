"""Backend services for the forfettario estimator."""
