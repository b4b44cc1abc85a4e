"""Echelon HTTP API: job submission and polling for market simulations."""
