"""Streamlit dashboard for the projection engine."""
