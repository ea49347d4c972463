"""Forfettario tax estimator."""
