"""Structural extraction of node definitions from component source text."""
