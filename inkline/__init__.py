"""Inkline: two-tier trust analysis for social media posts."""
