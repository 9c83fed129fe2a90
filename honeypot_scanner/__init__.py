"""Solana Honeypot Scanner - detect tokens that can be bought but not sold."""

__version__ = "1.0.0"
__author__ = "Solana Honeypot Scanner Contributors"
__description__ = "Heuristic honeypot detection from mint authorities, token program ownership and swap quotes"
