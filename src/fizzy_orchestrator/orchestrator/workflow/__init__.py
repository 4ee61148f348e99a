"""Composite card operations built on top of the Fizzy client."""
