"""Validator factories for the contract schema slots."""
