"""Reunion registration backend."""
